"""Turn stored documents into response models with user references resolved."""

from collections.abc import Iterable

from ..repositories.base import Document, UserRepository
from ..schemas.nfts import NFTOut
from ..schemas.users import UserSummary


def user_summary(doc: Document, include_bio: bool = False) -> UserSummary:
    return UserSummary(
        id=doc["id"],
        username=doc["username"],
        profile_image=doc.get("profile_image", ""),
        bio=doc.get("bio", "") if include_bio else None,
    )


async def load_summaries(
    users: UserRepository, user_ids: Iterable[str], include_bio: bool = False
) -> dict[str, UserSummary]:
    """Fetch the referenced users once and index their summaries by id."""
    wanted = list(dict.fromkeys(uid for uid in user_ids if uid))
    if not wanted:
        return {}
    return {
        doc["id"]: user_summary(doc, include_bio=include_bio)
        for doc in await users.get_many(wanted)
    }


def _party(user_id: str, summaries: dict[str, UserSummary]) -> UserSummary | str:
    return summaries.get(user_id, user_id)


def nft_out(
    doc: Document,
    summaries: dict[str, UserSummary],
    resolve_history: bool = False,
) -> NFTOut:
    """Build an NFTOut; unknown user ids stay as raw strings."""
    data = dict(doc)
    data["creator"] = _party(doc["creator"], summaries)
    data["owner"] = _party(doc["owner"], summaries)
    data["like_count"] = len(doc.get("likes", []))
    history = []
    for entry in doc.get("transaction_history", []):
        entry = dict(entry)
        if resolve_history:
            entry["from_user"] = _party(entry.pop("from"), summaries)
            entry["to_user"] = _party(entry.pop("to"), summaries)
        else:
            entry["from_user"] = entry.pop("from")
            entry["to_user"] = entry.pop("to")
        history.append(entry)
    data["transaction_history"] = history
    return NFTOut.model_validate(data)


async def present_nfts(
    users: UserRepository, docs: list[Document]
) -> list[NFTOut]:
    """Resolve creator and owner for a page of NFTs with a single user lookup."""
    ids = [uid for doc in docs for uid in (doc["creator"], doc["owner"])]
    summaries = await load_summaries(users, ids)
    return [nft_out(doc, summaries) for doc in docs]


async def present_nft(
    users: UserRepository, doc: Document, detailed: bool = False
) -> NFTOut:
    """Resolve a single NFT.

    In ``detailed`` mode the creator carries its bio and the transaction
    history parties are resolved as well.
    """
    if not detailed:
        return (await present_nfts(users, [doc]))[0]

    history_ids = [
        uid
        for entry in doc.get("transaction_history", [])
        for uid in (entry.get("from"), entry.get("to"))
    ]
    summaries = await load_summaries(users, [doc["owner"], *history_ids])
    creator = await load_summaries(users, [doc["creator"]], include_bio=True)
    out = nft_out(doc, summaries, resolve_history=True)
    out.creator = creator.get(doc["creator"], doc["creator"])
    return out
