"""Record key layout."""


def user(external_id: str) -> str:
    return f"user:{external_id}"


def user_email(email: str) -> str:
    return f"user_email:{email}"


def user_articles(user_id: str) -> str:
    return f"user_articles:{user_id}"


def article(article_id: str) -> str:
    return f"article:{article_id}"


def rate_limit(address: str) -> str:
    return f"rate_limit:{address}"
