#!/usr/bin/env python3

"""
Tests for the REST-backed data sources (ADS, JPL, MAST, NED, NIST, SDSS,
Splatalogue, AAVSO)
"""

import asyncio
import json
from datetime import date

import httpx
import pytest

from data_sources.aavso import AavsoDataSource, AavsoRegionQuery, AavsoStarQuery, parse_vsx_json
from data_sources.ads import AdsDataSource, AdsQuery, docs_to_result
from data_sources.jpl import HorizonsQuery, JplDataSource, SbdbQuery
from data_sources.mast import MastDataSource, MastQuery, rows_to_result
from data_sources.ned import NedDataSource, NedQuery
from data_sources.nist import NistDataSource, NistQuery, parse_nist_lines
from data_sources.sdss import SdssDataSource, SdssQuery
from data_sources.splatalogue import SplatalogueDataSource, SplatalogueQuery, wavelength_range_m


def respond_json(payload, sink=None):
    def handler(request):
        if sink is not None:
            sink.append(request)
        return httpx.Response(200, json=payload)
    return handler


def respond_text(text, sink=None):
    def handler(request):
        if sink is not None:
            sink.append(request)
        return httpx.Response(200, text=text)
    return handler


class TestAds:
    def test_missing_token_is_an_error(self, mock_client, monkeypatch):
        monkeypatch.delenv('ADS_API_KEY', raising=False)
        sent = []
        source = AdsDataSource(client=mock_client(respond_json({}, sent)))

        result = asyncio.run(source.search(AdsQuery(query="title:exoplanet")))

        assert result['status'] == 'error'
        assert "ADS_API_KEY is not set" in result['error']
        assert sent == []

    def test_search_sends_bearer_token(self, mock_client, monkeypatch):
        monkeypatch.setenv('ADS_API_KEY', 'secret-token')
        sent = []
        payload = {'response': {'numFound': 1, 'docs': [{
            'bibcode': '1929PNAS...15..168H',
            'title': ['A Relation between Distance and Radial Velocity among Extra-Galactic Nebulae'],
            'author': ['Hubble, Edwin'],
            'year': '1929',
        }]}}
        source = AdsDataSource(client=mock_client(respond_json(payload, sent)))

        result = asyncio.run(source.search(AdsQuery(query='author:"Hubble, E"', max_results=5)))

        request = sent[0]
        assert request.headers['Authorization'] == 'Bearer secret-token'
        assert request.url.params['q'] == 'author:"Hubble, E"'
        assert request.url.params['rows'] == '5'
        assert request.url.params['sort'] == 'date desc'
        assert "  bibcode: 1929PNAS...15..168H" in result['text']
        assert "  author: Hubble, Edwin" in result['text']
        assert result['text'].endswith("Total matches in ADS: 1")

    def test_long_author_lists_are_shortened(self):
        result = docs_to_result([{'author': ['A', 'B', 'C', 'D'], 'title': ['T'], 'doi': []}])
        row = dict(result.rows[0])
        assert row['author'] == 'A; B; C et al.'
        assert row['title'] == 'T'
        assert row['doi'] is None


class TestJpl:
    def test_horizons_defaults_to_today_and_tomorrow(self):
        params = JplDataSource.horizons_params(HorizonsQuery(target="Mars"), today=date(2024, 2, 28))
        assert params['COMMAND'] == "'Mars'"
        assert params['START_TIME'] == "'2024-02-28'"
        assert params['STOP_TIME'] == "'2024-02-29'"
        assert params['EPHEM_TYPE'] == 'OBSERVER'
        assert params['CENTER'] == "'500'"
        assert params['format'] == 'json'

    def test_horizons_ephemeris_type_mapping(self):
        params = JplDataSource.horizons_params(HorizonsQuery(target="Ceres", ephemeris_type='vectors'))
        assert params['EPHEM_TYPE'] == 'VECTORS'

    def test_horizons_result_text(self, mock_client):
        source = JplDataSource(client=mock_client(respond_json({'result': "*** Mars ephemeris ***"})))

        result = asyncio.run(source.horizons(HorizonsQuery(target="Mars")))

        assert result['text'] == "## JPL Horizons: Mars (ephemerides)\n\n*** Mars ephemeris ***"

    def test_horizons_error_field(self, mock_client):
        source = JplDataSource(client=mock_client(respond_json({'error': "No matches found."})))

        result = asyncio.run(source.horizons(HorizonsQuery(target="Zork")))

        assert result == {'status': 'error', 'error': "JPL Horizons error: No matches found."}

    def test_sbdb_sections(self, mock_client):
        payload = {
            'object': {'fullname': '1 Ceres (A801 AA)', 'kind': 'an', 'des': '1'},
            'orbit': {'elements': [{'name': 'e', 'title': 'eccentricity', 'value': '0.0789'},
                                   {'name': 'a', 'title': 'semi-major axis', 'value': '2.77', 'units': 'au'}]},
            'phys_par': [{'name': 'diameter', 'title': 'diameter', 'value': '939.4', 'units': 'km'}],
        }
        sent = []
        source = JplDataSource(client=mock_client(respond_json(payload, sent)))

        result = asyncio.run(source.small_body(SbdbQuery(target="Ceres")))

        text = result['text']
        assert sent[0].url.params['sstr'] == 'Ceres'
        assert sent[0].url.params['phys-par'] == '1'
        assert "  Name: 1 Ceres (A801 AA)" in text
        assert "  semi-major axis: 2.77 au" in text
        assert "### Physical Parameters" in text
        assert "  diameter: 939.4 km" in text

    def test_sbdb_not_found_uses_service_message(self, mock_client):
        source = JplDataSource(client=mock_client(respond_json({'message': 'specified object was not found'})))

        result = asyncio.run(source.small_body(SbdbQuery(target="Nonexistent")))

        assert result['text'].endswith("specified object was not found")

    @pytest.mark.parametrize("payload", [["Mars"], "Mars", 42])
    def test_horizons_unexpected_payload_has_empty_body(self, mock_client, payload):
        source = JplDataSource(client=mock_client(respond_json(payload)))

        result = asyncio.run(source.horizons(HorizonsQuery(target="Mars")))

        assert result == {'status': 'success', 'text': "## JPL Horizons: Mars (ephemerides)\n\n"}

    def test_sbdb_malformed_sections_are_skipped(self, mock_client):
        payload = {'object': "Ceres", 'orbit': ["e"], 'phys_par': ["diameter", {'name': 'GM', 'value': '62.6'}]}
        source = JplDataSource(client=mock_client(respond_json(payload)))

        result = asyncio.run(source.small_body(SbdbQuery(target="Ceres")))

        assert result['status'] == 'success'
        assert "### Orbital Elements" not in result['text']
        assert "  GM: 62.6" in result['text']

    def test_sbdb_list_payload_is_not_found(self, mock_client):
        source = JplDataSource(client=mock_client(respond_json(["Ceres"])))

        result = asyncio.run(source.small_body(SbdbQuery(target="Ceres")))

        assert result['text'].endswith("No information found for this target.")


class TestMast:
    def test_name_lookup_then_cone(self, mock_client, form_fields):
        services = []

        def handler(request):
            body = json.loads(form_fields(request)['request'])
            services.append(body)
            if body['service'] == 'Mast.Name.Lookup':
                return httpx.Response(200, json={'resolvedCoordinate': [{'ra': 10.68, 'decl': 41.27}]})
            return httpx.Response(200, json={'data': [
                {'obsid': '1', 'obs_collection': 'HST', 'target_name': 'M31', 's_ra': 10.68, 's_dec': 41.27},
            ]})

        source = MastDataSource(client=mock_client(handler))
        result = asyncio.run(source.query_observations(MastQuery(object_name="M31")))

        assert [s['service'] for s in services] == ['Mast.Name.Lookup', 'Mast.Caom.Cone']
        cone = services[1]['params']
        assert cone['ra'] == 10.68
        assert cone['dec'] == 41.27
        assert cone['radius'] == pytest.approx(0.05)
        assert "  obs_collection: HST" in result['text']
        assert "MAST Query Result: M31" in result['text']

    def test_needs_name_or_position(self, mock_client):
        source = MastDataSource(client=mock_client(respond_json({})))
        result = asyncio.run(source.query_observations(MastQuery(ra=10.0)))
        assert result['status'] == 'error'

    def test_unresolved_name(self, mock_client):
        source = MastDataSource(client=mock_client(respond_json({'resolvedCoordinate': []})))
        result = asyncio.run(source.query_observations(MastQuery(object_name="Nowhere")))
        assert result['error'] == "Could not resolve object name: Nowhere"

    @pytest.mark.parametrize("payload", [
        {'resolvedCoordinate': ["M31"]},
        {'resolvedCoordinate': [{'ra': 10.68}]},
        {'resolvedCoordinate': "M31"},
        ["M31"],
    ])
    def test_malformed_name_lookup_is_unresolved(self, mock_client, payload):
        source = MastDataSource(client=mock_client(respond_json(payload)))
        result = asyncio.run(source.query_observations(MastQuery(object_name="M31")))
        assert result['error'] == "Could not resolve object name: M31"

    def test_non_object_rows_are_dropped(self):
        assert rows_to_result(["HST", 3]).is_empty
        assert rows_to_result("HST").is_empty
        assert [dict(r) for r in rows_to_result(["HST", {'obsid': '1'}]).rows] == [{'obsid': '1'}]

    def test_display_columns_come_first(self):
        result = rows_to_result([{'zzz': 1, 'target_name': 'M31', 'obs_collection': 'HST'}])
        assert result.columns == ('obs_collection', 'target_name', 'zzz')


class TestNed:
    def test_preferred_object(self, mock_client, form_fields):
        sent = []
        payload = {
            'ResultCode': 3,
            'Preferred': {
                'Name': 'MESSIER 031',
                'ObjType': {'Value': 'G'},
                'Position': {'RA': 10.684793, 'Dec': 41.269065},
                'Redshift': {'Value': -0.001004},
            },
        }
        source = NedDataSource(client=mock_client(respond_json(payload, sent)))

        result = asyncio.run(source.lookup(NedQuery(object_name="M31")))

        assert sent[0].method == 'POST'
        assert json.loads(form_fields(sent[0])['json']) == {'name': {'v': 'M31'}}
        text = result['text']
        assert "  Name: MESSIER 031" in text
        assert "  Type: G" in text
        assert "  RA: 10.684793" in text
        assert "  Redshift: -0.001004" in text

    def test_unknown_object(self, mock_client):
        source = NedDataSource(client=mock_client(respond_json({'ResultCode': 1})))
        result = asyncio.run(source.lookup(NedQuery(object_name="Nowhere")))
        assert "Object not found: Nowhere" in result['text']

    @pytest.mark.parametrize("payload", [
        ["M31"],
        {'Preferred': "MESSIER 031"},
        {'Preferred': {'Name': 'MESSIER 031', 'Position': [10.68, 41.27]}},
    ])
    def test_unexpected_payload_shapes_still_render(self, mock_client, payload):
        source = NedDataSource(client=mock_client(respond_json(payload)))

        result = asyncio.run(source.lookup(NedQuery(object_name="M31")))

        assert result['status'] == 'success'
        assert result['text'].startswith("## NED Query Result: M31")


NIST_RESPONSE = (
    "Spectrum lines for H I\n"
    "obs_wl_air(A)\tritz_wl_air(A)\tintens\tAki(s^-1)\tAcc\tsp_num\n"
    "4861.35\t4861.35\t\"80000\"\t2.06e+07\tAAA\t1\n"
    "6562.79\t6562.80\t\"500000\"\t4.41e+07\tAAA\t1\n"
    "6562.85\t6562.85\t\"120000\"\t2.24e+07\tAAA\t1\n"
)


class TestNist:
    def test_parser_finds_header_and_strips_quotes(self):
        result = parse_nist_lines(NIST_RESPONSE)
        assert result.columns[:3] == ('obs_wl_air(A)', 'ritz_wl_air(A)', 'intens')
        assert len(result) == 3
        assert dict(result.rows[1])['intens'] == '500000'

    def test_parser_without_table(self):
        assert parse_nist_lines("No lines are available in ASD with the parameters selected").is_empty

    def test_needs_range_or_element(self, mock_client):
        sent = []
        source = NistDataSource(client=mock_client(respond_text(NIST_RESPONSE, sent)))

        result = asyncio.run(source.query_lines(NistQuery(min_wavelength=4000)))

        assert result['status'] == 'error'
        assert sent == []

    def test_element_only_searches_full_range_and_truncates(self, mock_client, form_fields):
        sent = []
        source = NistDataSource(client=mock_client(respond_text(NIST_RESPONSE, sent)))

        result = asyncio.run(source.query_lines(NistQuery(linename="H I", max_results=2)))

        fields = form_fields(sent[0])
        assert fields['spectra'] == 'H I'
        assert fields['low_w'] == '1.0'
        assert fields['upp_w'] == '100000.0'
        assert fields['format'] == '3'
        assert "NIST Atomic Spectra Database: H I" in result['text']
        assert "Found 2 result(s)." in result['text']
        assert result['text'].endswith("... and 1 more lines.")


class TestSdss:
    def test_cone_radius_is_capped(self):
        sql = SdssDataSource().build_sql(SdssQuery(query_type='cone', ra=180.0, dec=0.5, radius=10))
        assert "dbo.fGetNearbyObjEq(180.0, 0.5, 3.0)" in sql

    @pytest.mark.parametrize("params", [
        {'query_type': 'cone', 'ra': 180.0},
        {'query_type': 'specobjid'},
        {'query_type': 'plate_mjd_fiberid', 'plate': 266, 'mjd': 51630},
    ])
    def test_missing_inputs(self, params, mock_client):
        sent = []
        source = SdssDataSource(client=mock_client(respond_json([], sent)))

        result = asyncio.run(source.query(SdssQuery(**params)))

        assert result['status'] == 'error'
        assert sent == []

    def test_plate_lookup_with_class_filter(self):
        sql = SdssDataSource().build_sql(
            SdssQuery(query_type='plate_mjd_fiberid', plate=266, mjd=51630, fiberid=3, objtype='galaxy')
        )
        assert sql.endswith("WHERE plate = 266 AND mjd = 51630 AND fiberid = 3 AND class = 'GALAXY'")

    def test_rows_are_rendered(self, mock_client):
        sent = []
        payload = [{'TableName': 'Table1', 'Rows': [{'specobjid': 299489677444933632, 'class': 'GALAXY', 'z': 0.0213}]}]
        source = SdssDataSource(client=mock_client(respond_json(payload, sent)))

        result = asyncio.run(source.query(SdssQuery(query_type='specobjid', specobjid=299489677444933632)))

        assert sent[0].url.params['format'] == 'json'
        assert "specobjid = 299489677444933632" in sent[0].url.params['cmd']
        assert "  class: GALAXY" in result['text']


SLAP_RESPONSE = """<VOTABLE><RESOURCE><TABLE>
<FIELD name="species" datatype="char"/>
<FIELD name="wavelength" datatype="double"/>
<DATA><TABLEDATA>
<TR><TD>CO v=0</TD><TD>0.0026</TD></TR>
<TR><TD>HCN v=0</TD><TD>0.0034</TD></TR>
</TABLEDATA></DATA>
</TABLE></RESOURCE></VOTABLE>"""


class TestSplatalogue:
    def test_frequency_to_wavelength(self):
        shortest, longest = wavelength_range_m(100, 200)
        assert shortest == pytest.approx(299792458 / 200e9)
        assert longest == pytest.approx(299792458 / 100e9)

    def test_inverted_range_is_an_error(self, mock_client):
        sent = []
        source = SplatalogueDataSource(client=mock_client(respond_text(SLAP_RESPONSE, sent)))

        result = asyncio.run(source.query_lines(SplatalogueQuery(min_frequency=230, max_frequency=115)))

        assert result['status'] == 'error'
        assert sent == []

    def test_species_filter(self, mock_client):
        sent = []
        source = SplatalogueDataSource(client=mock_client(respond_text(SLAP_RESPONSE, sent)))

        result = asyncio.run(source.query_lines(
            SplatalogueQuery(min_frequency=100, max_frequency=120, chemical_name="co")
        ))

        assert sent[0].url.params['REQUEST'] == 'queryData'
        low, high = (float(v) for v in sent[0].url.params['WAVELENGTH'].split('/'))
        assert low < high
        assert "  species: CO v=0" in result['text']
        assert "HCN" not in result['text']


VSX_VOTABLE = """<VOTABLE><RESOURCE><TABLE>
<FIELD name="Name"/><FIELD name="Type"/><FIELD name="MaxMag"/>
<DATA><TABLEDATA>
<TR><TD>&lt;b&gt;omi Cet&lt;/b&gt;</TD><TD>M</TD><TD>2.0 V</TD></TR>
</TABLEDATA></DATA>
</TABLE></RESOURCE></VOTABLE>"""


class TestAavso:
    def test_star_query_strips_markup(self, mock_client):
        sent = []
        source = AavsoDataSource(client=mock_client(respond_text(VSX_VOTABLE, sent)))

        result = asyncio.run(source.query_star(AavsoStarQuery(star_name="Mira")))

        assert sent[0].url.params['view'] == 'query.votable'
        assert sent[0].url.params['ident'] == 'Mira'
        assert "  Name: omi Cet" in result['text']
        assert "<b>" not in result['text']

    def test_region_query_parameters(self, mock_client):
        sent = []
        source = AavsoDataSource(client=mock_client(respond_text(VSX_VOTABLE, sent)))

        asyncio.run(source.query_region(AavsoRegionQuery(ra=34.8, dec=2.5, radius=30, max_magnitude=10)))

        params = sent[0].url.params
        assert params['view'] == 'api.list'
        assert params['dec'] == '+2.5'
        assert float(params['radius']) == pytest.approx(0.5)
        assert params['tomag'] == '10.0'

    def test_negative_declination_keeps_sign(self, mock_client):
        sent = []
        source = AavsoDataSource(client=mock_client(respond_text(VSX_VOTABLE, sent)))

        asyncio.run(source.query_region(AavsoRegionQuery(ra=34.8, dec=-12.25)))

        assert sent[0].url.params['dec'] == '-12.25'
        assert 'tomag' not in sent[0].url.params

    def test_vsx_json(self):
        result = parse_vsx_json('{"VSXObjects": {"VSXObject": [{"Name": "R Leo", "Period": "309.95"}]}}')
        assert [dict(row) for row in result.rows] == [{'Name': 'R Leo', 'Period': '309.95'}]
        assert parse_vsx_json('{"VSXObjects": {}}').is_empty
        assert parse_vsx_json('not json').is_empty

    @pytest.mark.parametrize("text", [
        '{"VSXObjects": {"VSXObject": ["x"]}}',
        '{"VSXObjects": "none"}',
        '{"VSXObjects": {"VSXObject": 7}}',
        '["VSXObjects"]',
    ])
    def test_vsx_json_with_unexpected_shapes_is_empty(self, text):
        assert parse_vsx_json(text).is_empty

    def test_vsx_json_keeps_only_object_entries(self):
        result = parse_vsx_json('{"VSXObjects": {"VSXObject": ["x", {"Name": "R Leo"}]}}')
        assert [dict(row) for row in result.rows] == [{'Name': 'R Leo'}]

    def test_region_query_xml_format_reads_votable(self, mock_client):
        sent = []
        source = AavsoDataSource(client=mock_client(respond_text(VSX_VOTABLE, sent)))

        result = asyncio.run(source.query_region(AavsoRegionQuery(ra=34.8, dec=-2.98, format='xml')))

        assert sent[0].url.params['format'] == 'xml'
        assert "  Name: omi Cet" in result['text']
