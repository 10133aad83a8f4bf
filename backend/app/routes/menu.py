from flask import Blueprint
from app.services.menu import MENU, filter_menu
from app.services.policy import current_auth

menu_bp = Blueprint('menu', __name__)


@menu_bp.get('')
def get_menu():
    # open endpoint: anonymous callers only get unrestricted entries
    auth = current_auth()
    return {'menu': [e.to_json() for e in filter_menu(MENU, auth.permissions)]}
