"""
SafeWatch Safety Backend (FastAPI)
Modular entry point. All logic is split across:
  config.py, models.py, geo.py, scoring.py, route_advisor.py,
  repository.py, insights.py, cache.py, routes.py
"""

import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

from routes import app  # noqa: F401,E402

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
