"""
NASA ADS Data Source

Literature search through the NASA Astrophysics Data System API. Requires a
personal API token in the ADS_API_KEY environment variable.
"""

from typing import Any, Dict, List, Literal

from pydantic import Field

import config
from data_io.parsers import TabularResult
from data_io.preview import format_tap_result
from .base import QUERY_ERRORS, BaseDataSource, QueryParams

ADS_SEARCH_API = 'https://api.adsabs.harvard.edu/v1/search/query'

ADS_FIELDS = ('bibcode', 'title', 'author', 'year', 'pub', 'citation_count', 'doi')
MAX_LISTED_AUTHORS = 3


class AdsQuery(QueryParams):
    query: str = Field(..., min_length=1, description='ADS search query (e.g., "author:\\"Hubble, E\\" year:1929", "title:exoplanet")')
    sort: Literal['date desc', 'citation_count desc', 'score desc'] = Field('date desc', description="Sort order")
    max_results: int = Field(10, ge=1, le=200, description="Maximum number of papers")


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _authors(value: Any) -> Any:
    if not isinstance(value, list):
        return value
    listed = '; '.join(value[:MAX_LISTED_AUTHORS])
    return listed + ' et al.' if len(value) > MAX_LISTED_AUTHORS else listed


def docs_to_result(docs: List[Dict[str, Any]]) -> TabularResult:
    """Flatten ADS document records (list-valued fields) into table rows."""
    records = []
    for doc in docs:
        records.append({
            'bibcode': doc.get('bibcode'),
            'title': _first(doc.get('title')),
            'author': _authors(doc.get('author')),
            'year': doc.get('year'),
            'pub': doc.get('pub'),
            'citation_count': doc.get('citation_count'),
            'doi': _first(doc.get('doi')),
        })
    return TabularResult.from_records(ADS_FIELDS, records)


class AdsDataSource(BaseDataSource):
    """NASA Astrophysics Data System."""

    def __init__(self, client=None):
        super().__init__(client=client, source_name="ads")

    async def search(self, params: AdsQuery) -> Dict[str, Any]:
        token = config.ads_api_key()
        if not token:
            return self.error(self.localize(
                params.lang,
                "ADS_API_KEY is not set. Create a token at https://ui.adsabs.harvard.edu/user/settings/token",
                "未设置 ADS_API_KEY。请在 https://ui.adsabs.harvard.edu/user/settings/token 创建令牌",
            ))

        try:
            data = await self.fetch_json(
                ADS_SEARCH_API,
                headers={'Authorization': f'Bearer {token}'},
                params={
                    'q': params.query,
                    'fl': ','.join(ADS_FIELDS),
                    'rows': params.max_results,
                    'sort': params.sort,
                },
            )
        except QUERY_ERRORS + (ValueError,) as e:
            return self.query_failed(e, params.lang)

        response = data.get('response', {}) if isinstance(data, dict) else {}
        result = docs_to_result(response.get('docs') or [])
        title = self.localize(params.lang, f"ADS Search: {params.query}", f"ADS 文献检索: {params.query}")
        text = format_tap_result(result, title)
        if 'numFound' in response:
            text += self.localize(
                params.lang,
                f"\n\nTotal matches in ADS: {response['numFound']}",
                f"\n\nADS 总匹配数: {response['numFound']}",
            )
        return self.success(text)
