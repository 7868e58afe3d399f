"""HTTP surface (thin FastAPI routers, no decision logic)."""
