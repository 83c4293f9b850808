"""
사용자 검색용 유틸리티
"""

LIKE_ESCAPE_CHAR = "\\"


def escape_like(term: str) -> str:
    """LIKE 패턴의 와일드카드(%, _)를 리터럴로 취급하도록 이스케이프"""
    return (
        term.replace(LIKE_ESCAPE_CHAR, LIKE_ESCAPE_CHAR * 2)
        .replace("%", LIKE_ESCAPE_CHAR + "%")
        .replace("_", LIKE_ESCAPE_CHAR + "_")
    )


def build_contains_pattern(term: str) -> str:
    """부분 일치 검색용 소문자 LIKE 패턴 생성"""
    return f"%{escape_like(term.strip().lower())}%"
