from flask import Blueprint, request, abort, current_app
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity, get_jwt
from sqlalchemy import select
from apihub.models.authz import User
from apihub import get_db
from apihub.services.policy import authenticate, build_claims
from apihub.utils.validation import require_fields

auth_bp = Blueprint('auth', __name__)


@auth_bp.post('/login')
def login():
    data = request.get_json(silent=True) or {}
    require_fields(data, 'email', 'password')
    user = authenticate(data['email'], data['password'])
    if not user:
        current_app.logger.info('Rejected login for %s', data['email'])
        abort(401, description='invalid credentials')
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    token = create_access_token(identity=str(user.id), additional_claims=build_claims(user))
    return {'access_token': token}


@auth_bp.get('/me')
@jwt_required()
def me():
    user_id = int(get_jwt_identity())
    session = get_db()
    user = session.execute(select(User).where(User.id==user_id)).scalar_one_or_none()
    if not user:
        abort(404)
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'role': user.role,
        'perms': user.effective_permissions(),
    }


@auth_bp.get('/status')
@jwt_required(optional=True)
def status():
    ident = get_jwt_identity()
    if ident is None:
        return {'is_authenticated': False}
    claims = get_jwt()
    return {'is_authenticated': True, 'user': {'id': int(ident), 'role': claims.get('role')}}
