"""
Format importers and exporters for PySRS.

Each module converts between one external representation and the CRS node
tree: WKT, PROJ.4, ESRI, USGS GCTP, PCI, GML, MapInfo and ERMapper.
"""

from .erm import format_erm, parse_erm
from .esri import format_esri, morph_from_esri, morph_to_esri, parse_esri
from .mapinfo import format_mapinfo
from .pci import format_pci, parse_pci
from .proj4 import format_proj4, parse_proj4
from .usgs import format_usgs, parse_usgs
from .wkt import format_pretty_wkt, format_wkt, parse_wkt
from .xml import fetch_definition, format_xml, parse_xml

__all__ = [
    'fetch_definition',
    'format_erm',
    'format_esri',
    'format_mapinfo',
    'format_pci',
    'format_pretty_wkt',
    'format_proj4',
    'format_usgs',
    'format_wkt',
    'format_xml',
    'morph_from_esri',
    'morph_to_esri',
    'parse_erm',
    'parse_esri',
    'parse_pci',
    'parse_proj4',
    'parse_usgs',
    'parse_wkt',
    'parse_xml',
]
