from typing import Any, Dict, List, Optional, Tuple
import logging

from ..core.config import normalize_bu_code
from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService
from ..models.database_models import Choice, Country, Vocabulary

logger = logging.getLogger(__name__)

FALLBACK_COUNTRIES: List[Country] = [
    Country(code="bd", name="Bangladesh", flag="🇧🇩", sites=["plant"]),
    Country(code="lk", name="Sri Lanka", flag="🇱🇰", sites=["hbp", "pcw", "quarry", "rmx"]),
    Country(
        code="th", name="Thailand", flag="🇹🇭",
        sites=["cwt", "iagg", "log", "office", "rmx", "sccc", "srb", "support", "iecc", "lbm"],
    ),
    Country(code="vn", name="Vietnam", flag="🇻🇳", sites=["catl", "hiep", "honc", "thiv", "ho", "cant", "nhon"]),
    Country(code="kh", name="Cambodia", flag="🇰🇭", sites=["cmic"]),
]


def _sites_of(data: Dict[str, Any]) -> List[str]:
    # "sites" wins over the older "site"; either may be a string or a list
    raw = data.get("sites") or data.get("site")
    if isinstance(raw, str):
        return [raw]
    if isinstance(raw, list):
        return [str(s) for s in raw if s]
    return []


def _choices_of(data: Dict[str, Any]) -> List[Choice]:
    choices = []
    for item in data.get("choices") or []:
        if isinstance(item, dict) and item.get("value") is not None:
            choices.append(Choice(
                value=str(item["value"]),
                text=str(item.get("text") or ""),
                colorClass=str(item.get("colorClass") or ""),
            ))
    return choices


def vocabulary_from_document(data: Dict[str, Any]) -> Vocabulary:
    return Vocabulary(
        bu=str(data.get("bu") or ""),
        name=data.get("name") or "",
        flag=data.get("flag") or "",
        sites=_sites_of(data),
        choices=_choices_of(data),
        accept=data.get("accept"),
        howto=data.get("howto"),
        inspector=data.get("inspector"),
        picture=data.get("picture"),
        remark=data.get("remark"),
        remarkr=data.get("remarkr"),
        submit=data.get("submit"),
    )


class VocabularyService:
    def __init__(self, db: DatabaseService):
        self.db = db
        self.collection = COLLECTIONS['vocabulary']

    async def get_vocabulary(self, bu: str) -> Tuple[bool, Optional[Vocabulary], Optional[str]]:
        code = normalize_bu_code(bu)
        success, docs, error = await self.db.query_documents(self.collection, filters=[("bu", "==", code)], limit=1)
        if not success:
            return False, None, error
        if not docs:
            return True, None, None
        return True, vocabulary_from_document(docs[0]), None

    async def get_all_vocabularies(self) -> Tuple[bool, List[Vocabulary], Optional[str]]:
        success, docs, error = await self.db.query_documents(self.collection)
        if not success:
            return False, [], error
        return True, [vocabulary_from_document(doc) for doc in docs if doc.get("bu")], None

    async def get_countries(self) -> List[Country]:
        """Countries from the vocabulary collection, or the built-in list when there are none."""
        success, vocabularies, error = await self.get_all_vocabularies()
        if not success:
            logger.error(f"Error fetching countries from vocabulary: {error}")
            return FALLBACK_COUNTRIES
        countries = [
            Country(code=v.bu, name=v.name or v.bu.upper(), flag=v.flag, sites=v.sites)
            for v in vocabularies
        ]
        return countries or FALLBACK_COUNTRIES

    async def get_site_mapping(self) -> Dict[str, List[str]]:
        return {country.code: country.sites for country in await self.get_countries()}
