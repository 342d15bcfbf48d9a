import os

basedir = os.path.abspath(os.path.dirname(__file__))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(basedir, 'registrar.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    FORM137_FOLDER = os.environ.get('FORM137_FOLDER') or os.path.join(basedir, 'form137')
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024
    ALLOWED_IMPORT_EXTENSIONS = {'xlsx'}

    SCHOOL_NAME = os.environ.get('SCHOOL_NAME', 'Senior High School')
    SCHOOL_ADDRESS = os.environ.get('SCHOOL_ADDRESS', '')

    SUPERADMIN_USERNAME = os.environ.get('SUPERADMIN_USERNAME', 'superadmin')
    SUPERADMIN_PASSWORD = os.environ.get('SUPERADMIN_PASSWORD', '')
    DEFAULT_STUDENT_PASSWORD = os.environ.get('DEFAULT_STUDENT_PASSWORD', '')

    SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', 'True').lower() == 'true'
    ARCHIVE_JOB_HOUR = int(os.environ.get('ARCHIVE_JOB_HOUR', '0'))


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SCHEDULER_ENABLED = False
    SUPERADMIN_PASSWORD = ''
