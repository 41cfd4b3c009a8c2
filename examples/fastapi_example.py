"""Example telemetry server backed by a local SQLite file.

Run with:
    uvicorn examples.fastapi_example:app --reload

Try:
    curl -X POST localhost:8000/metrics \
        -H 'content-type: application/json' \
        -d '{"name": "cpu", "value": 42.5, "tags": ["prod"]}'
    curl 'localhost:8000/metrics?name=cpu&tags=prod'
    curl 'localhost:8000/query?prompt=top%203%20cpu%20metrics%20today'

Without REDIS_URL the list cache lives in process.
"""

from telequery.app import create_app
from telequery.config import Settings

settings = Settings(database_path="example_metrics.db", log_level="DEBUG")

app = create_app(settings)
