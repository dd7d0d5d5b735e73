from models.user import User
from models.refresh_token import RefreshToken
