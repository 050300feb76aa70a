"""Central MongoDB access - single client, named collections"""
import urllib.parse
from pymongo import MongoClient, ASCENDING, DESCENDING
from coachhub.config.settings import DatabaseConfig

# MongoDB connection configuration
MONGO_CLIENT_CONFIG = {
    'maxPoolSize': 100,
    'minPoolSize': 5,
    'connectTimeoutMS': 10000,
    'serverSelectionTimeoutMS': 10000,
    'waitQueueTimeoutMS': 10000,
    'socketTimeoutMS': 60000,
    'retryWrites': True,
    'retryReads': True,
    'w': 1
}

# Centralized collection references
COLLECTIONS = {
    # Accounts
    'users': 'users',
    'parents': 'parents',
    'teacher_applications': 'teacher_applications',

    # Billing
    'subscriptions': 'subscriptions',
    'discounts': 'discounts',
    'free_teacher_slots': 'free_teacher_slots',

    # Teaching
    'classes': 'classes',
    'assignments': 'assignments',
    'submissions': 'assignment_submissions',
    'goals': 'goals',

    # Gamification
    'achievements': 'achievements',
    'user_achievements': 'user_achievements',
    'user_levels': 'user_levels',
    'user_streaks': 'user_streaks',
    'leaderboards': 'leaderboards',
    'user_rewards': 'user_rewards',
    'experience_log': 'experience_log',

    # Video coaching
    'video_sessions': 'video_sessions',

    # Social learning
    'study_groups': 'study_groups',
    'study_sessions': 'study_sessions',
    'study_posts': 'study_posts',
    'study_resources': 'study_resources',
    'study_challenges': 'study_challenges',

    # Adaptive learning
    'learning_modules': 'learning_modules',
    'learning_paths': 'learning_paths',
    'learning_profiles': 'student_learning_profiles',
    'recommendations': 'adaptive_recommendations',
    'assessments': 'adaptive_assessments',

    # Parents
    'parent_notifications': 'parent_notifications',
    'parent_reports': 'parent_reports',
}

_client = None
_db_name = DatabaseConfig.DB_NAME


def escape_mongo_uri(uri: str) -> str:
    """Escape credentials only if they exist"""
    parsed_uri = urllib.parse.urlparse(uri)
    if not (parsed_uri.username and parsed_uri.password):
        return uri

    escaped_username = urllib.parse.quote_plus(parsed_uri.username)
    escaped_password = urllib.parse.quote_plus(parsed_uri.password)
    escaped_netloc = f"{escaped_username}:{escaped_password}@{parsed_uri.hostname}"
    if parsed_uri.port:
        escaped_netloc += f":{parsed_uri.port}"

    return urllib.parse.urlunparse((
        parsed_uri.scheme,
        escaped_netloc,
        parsed_uri.path,
        parsed_uri.params,
        parsed_uri.query,
        parsed_uri.fragment
    ))


def get_mongo_client():
    """Get a MongoDB client with connection pooling."""
    return MongoClient(escape_mongo_uri(DatabaseConfig.DB_URL), **MONGO_CLIENT_CONFIG)


def init_db(client=None, db_name: str = None):
    """Install the client used by every repository (tests pass a mongomock client)"""
    global _client, _db_name
    _client = client if client is not None else get_mongo_client()
    if db_name:
        _db_name = db_name
    ensure_indexes()
    return get_db()


def get_client():
    """Get MongoDB client instance"""
    global _client
    if _client is None:
        _client = get_mongo_client()
    return _client


def get_db():
    """Get database instance"""
    return get_client()[_db_name]


def get_collection(name):
    """Get collection by logical name"""
    return get_db()[COLLECTIONS[name]]


def ping() -> bool:
    get_client().admin.command("ping")
    return True


def ensure_indexes():
    """Unique and lookup indexes used by the services"""
    get_collection('users').create_index([("username", ASCENDING)], unique=True)
    get_collection('users').create_index([("email", ASCENDING)], unique=True)
    get_collection('parents').create_index([("email", ASCENDING)], unique=True)
    get_collection('submissions').create_index(
        [("assignmentId", ASCENDING), ("studentId", ASCENDING)], unique=True
    )
    get_collection('subscriptions').create_index([("createdAt", DESCENDING)])
    get_collection('parent_notifications').create_index([("parentId", ASCENDING), ("createdAt", DESCENDING)])
    get_collection('leaderboards').create_index([("type", ASCENDING), ("category", ASCENDING)], unique=True)
    get_collection('achievements').create_index([("name", ASCENDING)], unique=True)
