from datetime import datetime
from typing import Any, Dict, Optional

from app.core.config import settings
from app.models.quests import Quest

PLATFORM_NAME = "SkillChain"

# fixed attribute order of the NFT metadata document
ATTRIBUTE_KEYS = (
    "Quest Title",
    "Quest ID",
    "Category",
    "Difficulty",
    "Platform",
    "Type",
    "Soulbound",
    "Completion Date",
)


def _base_url() -> str:
    return settings.BASE_URL.rstrip("/")


def build_credential_metadata(
    quest: Quest,
    username: str,
    user_id: str,
    issued_at: datetime,
    token_mint: Optional[str] = None,
) -> Dict[str, Any]:
    """
    NFT-style metadata for a quest credential.

    The same document shape is uploaded at issuance time (no token mint yet)
    and served by /credentials/metadata/{token_mint}.
    """
    values = (
        quest.title,
        str(quest.id),
        quest.category,
        quest.difficulty,
        PLATFORM_NAME,
        "Credential",
        "true",
        issued_at.date().isoformat(),
    )
    external_url = (
        f"{_base_url()}/credentials/verify/{token_mint}"
        if token_mint
        else f"{_base_url()}/quests/{quest.id}"
    )
    return {
        "name": f"{quest.title} - {PLATFORM_NAME} Credential",
        "description": (
            f'This credential certifies that {username} has successfully completed '
            f'the "{quest.title}" quest on {PLATFORM_NAME} Platform.'
        ),
        "image": f"{_base_url()}/static/credential.svg",
        "external_url": external_url,
        "attributes": [
            {"trait_type": key, "value": value} for key, value in zip(ATTRIBUTE_KEYS, values)
        ],
        "properties": {
            "category": "credential",
            "questId": quest.id,
            "userId": user_id,
            "earnedBy": username,
            "issuedAt": issued_at.isoformat(),
            "soulbound": True,
        },
    }
