import os


def _flag(name, default='0'):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # sqlite file by default; point DATABASE_URL at hosted Postgres in production
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///leaderboard.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # 'sql', 'mongo' or 'memory'
    STORAGE_BACKEND = os.environ.get('STORAGE_BACKEND', 'sql')
    MONGO_URI = os.environ.get('MONGO_URI') or 'mongodb://localhost:27017'
    MONGO_DB_NAME = os.environ.get('MONGO_DB_NAME', 'tiedrop')
    # Public leaderboard cap
    LEADERBOARD_LIMIT = int(os.environ.get('LEADERBOARD_LIMIT', '20'))
    # Ranks that trigger a chat announcement
    PLACEMENT_DEPTH = int(os.environ.get('PLACEMENT_DEPTH', '3'))
    # Messages replayed to a newly connected socket
    CHAT_REPLAY_LIMIT = int(os.environ.get('CHAT_REPLAY_LIMIT', '50'))
    # Live messages buffered per socket while its replay loads (drop-oldest)
    BROADCAST_PENDING_LIMIT = int(os.environ.get('BROADCAST_PENDING_LIMIT', '500'))
    SYSTEM_AUTHOR = os.environ.get('SYSTEM_AUTHOR', 'SYSTEM')
    PROFILE_URL_TEMPLATE = os.environ.get('PROFILE_URL_TEMPLATE', 'https://twitter.com/{username}')
    # Exposes /auth/dev-login in place of the provider callback. Never in prod.
    DEV_LOGIN_ENABLED = _flag('DEV_LOGIN_ENABLED')
