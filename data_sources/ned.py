"""
NED Data Source

Object lookups in the NASA/IPAC Extragalactic Database.
"""

import json
from typing import Any, Dict

from pydantic import Field

from .base import QUERY_ERRORS, BaseDataSource, QueryParams

NED_OBJECT_LOOKUP = 'https://ned.ipac.caltech.edu/srs/ObjectLookup'

# ResultCode 3 is a unique match; 0 is used by some lookups for success too
NED_FOUND_CODES = (0, 3)


class NedQuery(QueryParams):
    object_name: str = Field(..., min_length=1, description='Object name (e.g. "M31", "NGC 1068", "Arp 220")')


class NedDataSource(BaseDataSource):
    """NASA/IPAC Extragalactic Database."""

    def __init__(self, client=None):
        super().__init__(client=client, source_name="ned")

    async def lookup(self, params: NedQuery) -> Dict[str, Any]:
        lang = params.lang
        try:
            data = await self.fetch_json(
                NED_OBJECT_LOOKUP,
                method='POST',
                data={'json': json.dumps({'name': {'v': params.object_name}})},
            )
        except QUERY_ERRORS + (ValueError,) as e:
            return self.query_failed(e, lang)
        if not isinstance(data, dict):
            data = {}

        title = self.localize(lang, f"NED Query Result: {params.object_name}", f"NED 查询结果: {params.object_name}")
        lines = [f"## {title}\n"]

        result_code = data.get('ResultCode')
        if result_code is not None and result_code not in NED_FOUND_CODES:
            lines.append(self.localize(lang, f"Object not found: {params.object_name}", f"未找到天体: {params.object_name}"))
            return self.success('\n'.join(lines))

        preferred = data.get('Preferred')
        if isinstance(preferred, dict) and preferred:
            lines.append(self.localize(lang, "### Basic Information", "### 基本信息"))
            if preferred.get('Name'):
                lines.append(f"  Name: {preferred['Name']}")
            object_type = preferred.get('ObjType') or {}
            type_value = object_type.get('Value') if isinstance(object_type, dict) else object_type
            if type_value:
                lines.append(f"  Type: {type_value}")
            position = preferred.get('Position')
            if not isinstance(position, dict):
                position = {}
            if position.get('RA') is not None:
                lines.append(f"  RA: {position['RA']}")
            if position.get('Dec') is not None:
                lines.append(f"  Dec: {position['Dec']}")
            redshift = preferred.get('Redshift') or {}
            if isinstance(redshift, dict) and redshift.get('Value') is not None:
                lines.append(f"  Redshift: {redshift['Value']}")
            lines.append('')
        else:
            for key, value in data.items():
                if value is not None and not isinstance(value, (dict, list)):
                    lines.append(f"  {key}: {value}")

        if len(lines) <= 1:
            lines.append(self.localize(lang, "No information found for this object.", "未找到该天体的信息。"))
        return self.success('\n'.join(lines))
