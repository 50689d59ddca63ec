import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('PRONOHUB_SECRET_KEY', 'django-insecure-pronohub-dev-key')

DEBUG = os.environ.get('PRONOHUB_DEBUG', 'False').lower() in ('1', 'true', 'yes')

ALLOWED_HOSTS = os.environ.get('PRONOHUB_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'tournaments',
    'predictions.apps.PredictionsConfig',
    'trophies',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'pronohub.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'pronohub.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.environ.get('PRONOHUB_DB_PATH', BASE_DIR / 'db.sqlite3'),
    }
}

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Scoring engine
PRONOHUB_ENGINE = {
    'MAX_WORKERS': int(os.environ.get('PRONOHUB_SWEEP_WORKERS', 4)),
    'TOURNAMENT_TIMEOUT': float(os.environ.get('PRONOHUB_SWEEP_TIMEOUT', 30)),
    'MAX_BONUS_MATCHES_PER_MATCHDAY': int(os.environ.get('PRONOHUB_MAX_BONUS_MATCHES', 1)),
    'EARLY_PREDICTION_BONUS_POINTS': 1,
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} [{name}] {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': os.environ.get('PRONOHUB_LOG_LEVEL', 'WARNING'),
    },
    'loggers': {
        'engine': {
            'handlers': ['console'],
            'level': os.environ.get('PRONOHUB_ENGINE_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
        'tournaments': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'predictions': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}
