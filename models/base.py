from sqlalchemy.orm import declarative_base

# Base 정의 (모델에서 import)
Base = declarative_base()
