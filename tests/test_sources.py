"""Tests for the beacon, gazetteer and peak readers."""

import csv
import io
from datetime import date

import pytest

from poi_import.algorithms.geo_proximity import BoundingBox
from poi_import.models import OSMPOI, POI, Attribute, NameKey
from poi_import.sources import (
    BeaconNumber,
    GeoName,
    Peak,
    SagnsPOI,
    SourceFormatError,
    Trig,
    feature_tags,
    normalize_feature,
    parse_beacon_number,
    read_geonames,
    read_kml,
    read_peaks,
    read_sagns,
)


KML = """<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
<Document>
  <name>Trig beacons</name>
  <Folder>
    <Placemark>
      <name>MACLEARS BEACON</name>
      <description><![CDATA[Name = Maclear's Beacon<br></br>Beacon Number = 12-345<br></br>Ortho Ht = 1085.6<br></br>Latitude = -33.9<br></br>Y = 123<br></br>Created By = NGI]]></description>
      <Point><coordinates>18.4098,-33.9628,0</coordinates></Point>
    </Placemark>
    <Placemark>
      <name>NO NUMBER</name>
      <description><![CDATA[Name = Nameless]]></description>
      <Point><coordinates>18.5,-33.8,0</coordinates></Point>
    </Placemark>
    <Placemark>
      <name>BAD NUMBER</name>
      <description><![CDATA[Name = Broken<br></br>Beacon Number = 12/345]]></description>
      <Point><coordinates>18.5,-33.8,0</coordinates></Point>
    </Placemark>
    <Placemark>
      <name>NO POINT</name>
      <description><![CDATA[Name = Elephant's Eye<br></br>Beacon Number = 7-89<br></br>Latitude = -34.05<br></br>Longitude = 18.43<br></br>Description = pillar<br></br>Colour = white]]></description>
    </Placemark>
  </Folder>
</Document>
</kml>
"""


# ---- trig -------------------------------------------------------------------


class TestBeaconNumber:
    def test_parse(self):
        assert parse_beacon_number("12-345") == BeaconNumber(12, 345)

    def test_str(self):
        assert str(BeaconNumber(12, 345)) == "12-345"

    @pytest.mark.parametrize("value", ["12345", "12-34-5", "ab-12", ""])
    def test_invalid(self, value):
        with pytest.raises(SourceFormatError):
            parse_beacon_number(value)


class TestTrig:
    def test_tags(self):
        t = Trig(lat=-33.9, lon=18.4, name="Maclear's Beacon", ele=1085.6,
                 number=BeaconNumber(12, 345), description="pillar")
        assert t.tags == {
            "man_made": "survey_point",
            "ref": "12-345",
            "source": "ngi",
            "name": "Maclear's Beacon",
            "ele": "1085.6",
            "description": "pillar",
        }

    def test_whole_elevation_has_no_decimal(self):
        t = Trig(name="x", ele=1085.0, number=BeaconNumber(1, 2))
        assert t.tags["ele"] == "1085"

    def test_add_tag(self):
        t = Trig(name="x", number=BeaconNumber(1, 2))
        t.add_tag("fixme", "check existing survey_point")
        assert t.tags["fixme"] == "check existing survey_point"

    def test_poi_capability(self):
        t = Trig(lat=-33.9, lon=18.4, name="x", number=BeaconNumber(1, 2))
        assert isinstance(t, POI)
        assert isinstance(t, OSMPOI)
        assert t.names[0].key == NameKey.DEFAULT
        assert t.osm_filter() == [Attribute("ref", "1-2")]

    def test_empty_name_has_no_names(self):
        t = Trig(lat=-33.9, lon=18.4, number=BeaconNumber(1, 2))
        assert t.names == []
        assert "name" not in t.tags


class TestReadKml:
    @pytest.fixture()
    def trigs(self):
        return read_kml(io.BytesIO(KML.encode("utf-8")))

    def test_skips_unparseable_placemarks(self, trigs):
        assert [t.name for t in trigs] == ["Maclear's Beacon", "Elephant's Eye"]

    def test_point_overrides_description(self, trigs):
        beacon = trigs[0]
        assert beacon.lat == -33.9628
        assert beacon.lon == 18.4098

    def test_fields(self, trigs):
        beacon = trigs[0]
        assert beacon.number == BeaconNumber(12, 345)
        assert beacon.ele == 1085.6
        assert beacon.created_by == "NGI"

    def test_description_coordinates_without_point(self, trigs):
        eye = trigs[1]
        assert (eye.lat, eye.lon) == (-34.05, 18.43)
        assert eye.description == "pillar"

    def test_reads_path(self, tmp_path):
        path = tmp_path / "beacons.kml"
        path.write_text(KML, encoding="utf-8")
        assert len(read_kml(path)) == 2


# ---- geonames ---------------------------------------------------------------


GEONAMES = (
    "RC\tUFI\tLAT\tLONG\tDSG\tFULL_NAME_RO\n"
    "1\t100\t-33.9628\t18.4098\tMT\tTable Mountain\n"
    "1\t101\t-33.9350\t18.3880\tPK\tLion's Head\n"
    "1\t102\t-33.9200\t18.4200\tPPL\tCape Town\n"
    "1\t103\tnot-a-lat\t18.4\tPK\tBroken\n"
    "1\t104\t-25.7479\t28.2293\tPPLC\tPretoria\n"
)


class TestReadGeonames:
    @pytest.fixture()
    def path(self, tmp_path):
        p = tmp_path / "za.txt"
        p.write_text(GEONAMES, encoding="utf-8")
        return p

    def test_reads_all_valid_rows(self, path):
        names = [g.name for g in read_geonames(path)]
        assert names == ["Table Mountain", "Lion's Head", "Cape Town", "Pretoria"]

    def test_type_filter_case_insensitive(self, path):
        result = read_geonames(path, types=["mt", "PK"])
        assert [g.name for g in result] == ["Table Mountain", "Lion's Head"]
        assert result[1].type == "pk"

    def test_bounds_filter(self, path):
        box = BoundingBox(min_lat=-34.5, max_lat=-33.0, min_lon=18.0, max_lon=19.0)
        names = [g.name for g in read_geonames(path, bounds=box)]
        assert "Pretoria" not in names
        assert len(names) == 3

    def test_missing_column(self, tmp_path):
        p = tmp_path / "bad.txt"
        p.write_text("LAT\tLONG\tNAME\n", encoding="utf-8")
        with pytest.raises(SourceFormatError):
            read_geonames(p)

    def test_geoname_capability(self):
        g = GeoName(name="Table Mountain", type="mt", lat=-33.96, lon=18.41, id=100)
        assert isinstance(g, OSMPOI)
        assert g.tags == {"name": "Table Mountain", "sagns_id": "100"}
        assert g.osm_filter() == [Attribute("name", "Table Mountain")]
        assert "Table Mountain" in str(g)

    def test_empty_name_has_no_names(self):
        g = GeoName(name="", type="mt", lat=-33.96, lon=18.41)
        assert g.names == []
        assert g.tags == {}


# ---- peaks ------------------------------------------------------------------


class TestReadPeaks:
    def test_reads_peaks(self, tmp_path):
        p = tmp_path / "peaks.csv"
        p.write_text("Seweweekspoortpiek;Klein Swartberg;2325\nMatroosberg;Hex River;2249.5\n")
        assert read_peaks(p) == [
            Peak("Seweweekspoortpiek", "Klein Swartberg", 2325.0),
            Peak("Matroosberg", "Hex River", 2249.5),
        ]

    def test_bad_elevation(self, tmp_path):
        p = tmp_path / "peaks.csv"
        p.write_text("Matroosberg;Hex River;high\n")
        with pytest.raises(SourceFormatError):
            read_peaks(p)

    def test_wrong_field_count(self, tmp_path):
        p = tmp_path / "peaks.csv"
        p.write_text("Matroosberg;2249\n")
        with pytest.raises(SourceFormatError):
            read_peaks(p)


# ---- sagns ------------------------------------------------------------------


SAGNS_HEADER = [
    "Name", "Feature_Description", "pklid", "Latitude", "Longitude", "Date", "MapInfo",
    "Province", "fklFeatureSubTypeID", "Previous_Name", "fklMagisterialDistrictID",
    "ProvinceID", "fklLanguageID", "fklDisteral", "Local Municipality", "Sound",
    "District Municipality", "fklLocalMunic", "Comments", "Meaning",
]


def sagns_row(name, feature, pklid, lat, lon, date_="01-02-1999", previous="", meaning=""):
    row = [""] * 20
    row[0], row[1], row[2], row[3], row[4], row[5] = name, feature, pklid, lat, lon, date_
    row[6] = "3318CD"
    row[7] = "Western Cape"
    row[9] = previous
    row[14] = "City of Cape Town"
    row[19] = meaning
    return row


SAGNS_ROWS = [
    sagns_row("Tafelberg", "Mountain", "4242", "-33.9628", "18.4098", meaning="Table mountain"),
    sagns_row("", "Residential Town", "17", "-33.9", "18.6", date_="someday", previous="Old Town"),
    sagns_row("Nowhere", "Yard", "18", "-33.9", "18.6"),
    sagns_row("Broken", "Peak", "19", "north", "18.6"),
    sagns_row("Bad Id", "Kop", "abc", "-33.95", "18.5"),
    sagns_row("Far", "Peak", "99", "-25.7", "28.2"),
]


def write_sagns(path, rows):
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(SAGNS_HEADER)
        writer.writerows(rows)
    return path


class TestFeatureTags:
    def test_normalize(self):
        assert normalize_feature(" Mountain Peak ") == "mountain_peak"
        assert normalize_feature("River (not specified)") == "river_(not_specified)"

    def test_mapping(self):
        assert feature_tags("mountain_peak") == {"natural": "peak"}
        assert feature_tags("river_(not_specified)") == {"waterway": "river"}
        assert feature_tags("dam") == {"natural": "water", "water": "reservoir"}

    def test_unknown(self):
        assert feature_tags("yard") == {}
        assert feature_tags("spaceport") == {}

    def test_returns_copy(self):
        feature_tags("peak")["name"] = "x"
        assert feature_tags("peak") == {"natural": "peak"}


class TestReadSagns:
    @pytest.fixture()
    def pois(self, tmp_path):
        return read_sagns(write_sagns(tmp_path / "sagns.csv", SAGNS_ROWS))

    def test_skips_unmapped_and_bad_coordinates(self, pois):
        assert [p.id for p in pois] == [4242, 17, 0, 99]

    def test_fields(self, pois):
        table = pois[0]
        assert (table.lat, table.lon) == (-33.9628, 18.4098)
        assert table.feature == "mountain"
        assert table.recorded == date(1999, 2, 1)
        assert table.province == "Western Cape"
        assert table.local_municipality == "City of Cape Town"

    def test_tags(self, pois):
        assert pois[0].tags == {
            "natural": "peak",
            "description": "Table mountain",
            "sagns_id": "4242",
            "source": "sagns",
            "name": "Tafelberg",
        }

    def test_previous_name_when_current_is_empty(self, pois):
        town = pois[1]
        assert [n.key for n in town.names] == [NameKey.OLD]
        assert town.tags["old_name"] == "Old Town"
        assert "name" not in town.tags
        assert town.tags["place"] == "town"
        assert town.recorded is None

    def test_bounds(self, tmp_path):
        box = BoundingBox(min_lat=-34.5, max_lat=-33.0, min_lon=18.0, max_lon=19.0)
        pois = read_sagns(write_sagns(tmp_path / "sagns.csv", SAGNS_ROWS), bounds=box)
        assert [p.id for p in pois] == [4242, 17, 0]

    def test_wrong_field_count(self, tmp_path):
        path = write_sagns(tmp_path / "sagns.csv", [SAGNS_ROWS[0][:19]])
        with pytest.raises(SourceFormatError):
            read_sagns(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "sagns.csv"
        path.write_text("")
        with pytest.raises(SourceFormatError):
            read_sagns(path)


class TestSagnsPOI:
    def test_capability(self):
        p = SagnsPOI(names=[], feature="peak", lat=-33.9, lon=18.4, id=7)
        assert isinstance(p, POI)
        assert isinstance(p, OSMPOI)
        assert p.osm_filter() == [Attribute("sagns_id", "7")]

    def test_add_tag(self):
        p = SagnsPOI(names=[], feature="peak", lat=-33.9, lon=18.4, id=7)
        p.add_tag("fixme", "check position")
        assert p.tags["fixme"] == "check position"
        assert p.tags["natural"] == "peak"

    def test_unnamed_record_has_no_name_tags(self):
        p = SagnsPOI(names=[], feature="peak", lat=-33.9, lon=18.4, id=7)
        assert p.names == []
        assert "<unnamed>" in str(p)
