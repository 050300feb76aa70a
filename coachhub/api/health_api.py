"""Health check API"""
import logging
from flask_restful import Resource
from pymongo.errors import PyMongoError
from coachhub.db.db_utils import ping
from coachhub.utils.time.timeutils import utc_now

logger = logging.getLogger(__name__)

class HealthCheckResource(Resource):
    def get(self):
        timestamp = utc_now().isoformat()
        try:
            ping()
        except PyMongoError as e:
            logger.error(f"Database ping failed: {e}")
            return {"status": "unhealthy", "database": "unreachable", "timestamp": timestamp}, 503

        return {"status": "healthy", "database": "connected", "timestamp": timestamp}, 200
