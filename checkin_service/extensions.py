from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager

# Records returned by conditional UPDATE .. RETURNING stay readable after commit
db = SQLAlchemy(session_options={"expire_on_commit": False})
jwt = JWTManager()

# Revoked admin token ids (jti), process-local
BLOCKLIST = set()
