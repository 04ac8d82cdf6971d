from flask import Blueprint

investments_bp = Blueprint('investments', __name__)

from . import routes
