"""Flask extensions for the application."""
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
