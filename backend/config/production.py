"""Production configuration."""
import os
from datetime import timedelta

class ProductionConfig:
    """Production configuration class."""
    
    # Basic Flask config
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv('SECRET_KEY')  # Must be set in production
    
    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False
    
    # Redis
    REDIS_URL = os.getenv('REDIS_URL')
    
    # JWT Configuration
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=7)
    
    # CORS
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', 'https://*.vercel.app').split(',')
    
    # Enhanced security
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    
    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.getenv('REDIS_URL')
    RATELIMIT_DEFAULT = "100 per day, 20 per hour"
    
    # Verification
    GEOFENCE_DEFAULT_RADIUS_METERS = 30
    FACE_RECOGNITION_THRESHOLD = 0.85
    FACE_MATCHER_BACKEND = os.getenv('FACE_MATCHER_BACKEND', 'http')
    FACE_MATCHER_URL = os.getenv('FACE_MATCHER_URL')
    FACE_MATCHER_TIMEOUT = 5
    LATE_AFTER_MINUTES = int(os.getenv('LATE_AFTER_MINUTES', 10))
    
    # Attempts
    ATTEMPT_IDLE_SECONDS = 120
    ATTEMPT_STORE = 'redis'
    
    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = os.getenv('LOG_FILE', '/app/logs/app.log')
