import uvicorn

from busplan.config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    setup_logging(level=settings.log_level, job_name="busplan")
    logger.info("Starting bus planner", extra={"mqtt_enabled": settings.mqtt_enabled})

    uvicorn.run(
        "busplan.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=False,
    )
