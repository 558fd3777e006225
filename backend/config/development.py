"""Development configuration."""
import os
from datetime import timedelta

class DevelopmentConfig:
    """Development configuration class."""
    
    # Basic Flask config
    DEBUG = True
    TESTING = False
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    
    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv('DEV_DATABASE_URL', 'sqlite:///smart_attendance_dev.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False
    
    # Redis (optional in dev)
    REDIS_URL = os.getenv('REDIS_URL')
    
    # JWT Configuration
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'jwt-secret-key-change-in-production')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=2)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=7)
    
    # CORS
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]
    
    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.getenv('REDIS_URL') or 'memory://'
    RATELIMIT_DEFAULT = "200 per day, 50 per hour"
    
    # Verification
    GEOFENCE_DEFAULT_RADIUS_METERS = 50
    FACE_RECOGNITION_THRESHOLD = 0.80
    FACE_MATCHER_BACKEND = os.getenv('FACE_MATCHER_BACKEND', 'device')
    FACE_MATCHER_URL = os.getenv('FACE_MATCHER_URL', 'http://127.0.0.1:8001/match')
    FACE_MATCHER_TIMEOUT = 10  # seconds
    LATE_AFTER_MINUTES = 10
    
    # Attempts
    ATTEMPT_IDLE_SECONDS = 120
    ATTEMPT_STORE = 'redis' if os.getenv('REDIS_URL') else 'memory'
    
    # Logging
    LOG_LEVEL = 'DEBUG'
    LOG_FILE = 'logs/app.log'
