import logging
import time
from datetime import datetime, timezone

from flask import Blueprint

from utils.errors import AppError
from .context import get_context
from .responses import success_response

logger = logging.getLogger(__name__)

bp = Blueprint("health", __name__)

_STARTED = time.monotonic()


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            ok: { type: boolean }
            status: { type: integer }
            data:
              type: object
              properties:
                status: { type: string, example: healthy }
                timestamp: { type: string }
                database: { type: string, example: connected }
                uptime: { type: number }
    """
    try:
        database = "connected" if get_context().store.ping() else "disconnected"
    except AppError:
        logger.warning("health check could not reach the database")
        database = "disconnected"

    return success_response(
        200,
        {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": database,
            "uptime": round(time.monotonic() - _STARTED, 3),
        },
    )
