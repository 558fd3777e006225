"""Testing configuration."""
from datetime import timedelta

class TestingConfig:
    """Testing configuration class."""
    
    # Basic Flask config
    DEBUG = False
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    
    # Database (in-memory SQLite for testing)
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False
    
    # Redis (mock or test Redis)
    REDIS_URL = 'redis://localhost:6379/15'
    
    # JWT Configuration
    JWT_SECRET_KEY = 'test-jwt-secret-with-enough-length-for-hs256'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=5)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(hours=1)
    
    # CORS
    CORS_ORIGINS = ["*"]
    
    # Rate Limiting (disabled for testing)
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = 'memory://'
    
    # Verification (relaxed for testing)
    GEOFENCE_DEFAULT_RADIUS_METERS = 15
    FACE_RECOGNITION_THRESHOLD = 0.80
    FACE_MATCHER_BACKEND = 'device'
    FACE_MATCHER_URL = 'http://face-matcher.test/match'
    FACE_MATCHER_TIMEOUT = 2
    LATE_AFTER_MINUTES = 10
    
    # Attempts
    ATTEMPT_IDLE_SECONDS = 120
    ATTEMPT_STORE = 'memory'
    
    # Logging
    LOG_LEVEL = 'WARNING'
