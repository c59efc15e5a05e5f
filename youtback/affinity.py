# ------------------------------------------------------------
# affinity.py — 사용자별 카테고리/언어 선호도 점수 저장소
# ------------------------------------------------------------

import math
from dataclasses import dataclass, field
from typing import Dict, Optional

from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from .models import CategoryScore, LanguageScore


@dataclass
class UserAffinity:
    category_scores: Dict[str, int] = field(default_factory=dict)
    language_scores: Dict[str, int] = field(default_factory=dict)


class AffinityStore:
    """
    user_category_scores / user_language_scores 테이블을 감싸는 저장소.

    commit은 하지 않습니다. 호출하는 서비스의 unit_of_work 안에서
    다른 변경(조회수, 시청 기록 등)과 함께 반영됩니다.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> UserAffinity:
        categories = self.db.query(CategoryScore).filter(CategoryScore.user_id == user_id).all()
        languages = self.db.query(LanguageScore).filter(LanguageScore.user_id == user_id).all()
        return UserAffinity(
            category_scores={c.category: c.score for c in categories if c.score > 0},
            language_scores={l.language: l.score for l in languages if l.score > 0},
        )

    def increment(self, user_id: str, category: str, language: str) -> None:
        # 시청 1회당 카테고리 +1, 언어 +1
        # 행이 없을 때의 INSERT와 있을 때의 +1을 한 문장(upsert)으로 처리해서
        # 같은 사용자의 첫 시청이 동시에 들어와도 PK 충돌이 나지 않음
        self.db.execute(self._upsert_plus_one(CategoryScore, CategoryScore.category, user_id, category))
        self.db.execute(self._upsert_plus_one(LanguageScore, LanguageScore.language, user_id, language))

    def _upsert_plus_one(self, model, key_column, user_id: str, key: str):
        dialect = self.db.get_bind().dialect.name
        values = {"user_id": user_id, key_column.key: key, "score": 1}
        if dialect in ("mysql", "mariadb"):
            return mysql_insert(model).values(**values).on_duplicate_key_update(score=model.score + 1)
        if dialect == "postgresql":
            insert = postgresql_insert
        elif dialect == "sqlite":
            insert = sqlite_insert
        else:
            raise NotImplementedError(f"upsert is not supported for dialect [{dialect}]")
        return (
            insert(model)
            .values(**values)
            .on_conflict_do_update(
                index_elements=["user_id", key_column.key],
                set_={"score": model.score + 1},
            )
        )

    def decay_category(self, user_id: str, category: str, factor: float) -> Optional[int]:
        """
        카테고리 점수를 floor(score * factor)로 줄입니다.
        - 결과가 0이면 행을 삭제
        - 카테고리가 없으면 아무것도 하지 않고 None 반환
        """
        cat = self.db.get(CategoryScore, (user_id, category), with_for_update=True)
        if cat is None:
            return None

        new_score = math.floor(cat.score * factor)
        if new_score <= 0:
            self.db.delete(cat)
            return 0
        cat.score = new_score
        return new_score

    def delete_all(self, user_id: str) -> None:
        self.db.query(CategoryScore).filter(CategoryScore.user_id == user_id).delete(synchronize_session=False)
        self.db.query(LanguageScore).filter(LanguageScore.user_id == user_id).delete(synchronize_session=False)
