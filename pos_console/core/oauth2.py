from fastapi.security import OAuth2PasswordBearer

# Reads the bearer token from the Authorization header
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

# Same extraction, but lets anonymous requests through
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)
