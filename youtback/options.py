# ------------------------------------------------------------
# options.py — 옵션 기반 검색(findByOption) 공통 처리
# ------------------------------------------------------------

from typing import List, Sequence, Tuple

from .errors import IllegalArgumentError


def pair_options(options: Sequence[str], values: Sequence[str]) -> List[Tuple[str, str]]:
    # 옵션과 값은 같은 순서/같은 개수로 전달되어야 함
    if len(options) != len(values):
        raise IllegalArgumentError("Options and values must have the same length")
    return [(o.upper(), v) for o, v in zip(options, values)]


def parse_range(option: str, value: str) -> Tuple[int, int]:
    """
    "from/to" 형식의 범위 값을 (from, to) 정수 튜플로 변환합니다.
    예) "1/100" → (1, 100)
    """
    parts = value.split("/")
    if len(parts) != 2:
        raise IllegalArgumentError(f"Illegal arguments option: [{option}] value [{value}]")
    try:
        low, high = int(parts[0]), int(parts[1])
    except ValueError:
        raise IllegalArgumentError(f"Illegal arguments option: [{option}] value [{value}]")
    return low, high
