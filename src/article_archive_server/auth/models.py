"""
Authentication Models

Typed claims carried by the archive's access tokens, available to routes
after token verification.
"""

from pydantic import BaseModel, Field, ConfigDict


class CallerContext(BaseModel):
    """
    Authenticated caller derived from a verified access token.
    """

    external_id: str = Field(
        ...,
        min_length=1,
        description="External identity id the token was issued for.",
    )

    user_id: str = Field(
        ...,
        min_length=1,
        description="Internal user id at the time the token was issued.",
    )

    email: str = Field(
        default="",
        description="Email address at the time the token was issued.",
    )

    name: str = Field(
        default="",
        description="Display name at the time the token was issued.",
    )

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )
