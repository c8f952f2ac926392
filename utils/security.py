import logging

import bcrypt

logger = logging.getLogger(__name__)

# 비밀번호 해싱 (저장소는 해시 결과만 저장하고 직접 해싱하지 않음)
def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()

# 비밀번호 검증
def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except ValueError as e:
        # 잘못된 해시 형식
        logger.warning("password hash could not be checked: %s", e)
        return False
