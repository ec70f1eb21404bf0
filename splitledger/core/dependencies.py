from fastapi import Request
from splitledger.core.jwt_config import read_access_token, verify_access_token


async def get_current_user_id(request: Request) -> int:
    return verify_access_token(read_access_token(request))
