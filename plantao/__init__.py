"""
DICT shift report service.

Record model, HTML/DOCX/PDF renderers and the export API for the
"relatório de plantão" of the traffic-crimes investigation unit.
"""
__version__ = "1.0.0"
