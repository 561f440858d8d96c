"""
Sample SPARQL result: MetaNetX metabolites and their cross-references.
"""
import copy
from typing import Any

_XREFS = [
    ("https://rdf.metanetx.org/chem/MNXM12406", "https://identifiers.org/CHEBI:82565"),
    ("https://rdf.metanetx.org/chem/MNXM12406", "https://identifiers.org/hmdb:HMDB0062508"),
    ("https://rdf.metanetx.org/chem/MNXM12406", "https://identifiers.org/hmdb:HMDB62508"),
    ("https://rdf.metanetx.org/chem/MNXM12406", "https://identifiers.org/kegg.compound:C19568"),
    ("https://rdf.metanetx.org/chem/MNXM12406", "https://identifiers.org/kegg.compound:C20306"),
    ("https://rdf.metanetx.org/chem/MNXM54455", "https://identifiers.org/CHEBI:16414"),
    ("https://rdf.metanetx.org/chem/MNXM54455", "https://identifiers.org/hmdb:HMDB0000056"),
    ("https://rdf.metanetx.org/chem/MNXM54455", "https://identifiers.org/hmdb:HMDB00056"),
]

SAMPLE_SPARQL_DATA: dict[str, Any] = {
    "head": {"link": [], "vars": ["metabolite", "xref"]},
    "results": {
        "distinct": False,
        "ordered": True,
        "bindings": [
            {
                "metabolite": {"type": "uri", "value": metabolite},
                "xref": {"type": "uri", "value": xref},
            }
            for metabolite, xref in _XREFS
        ],
    },
}


def get_sample_data() -> dict[str, Any]:
    """Return a fresh copy of the sample result."""
    return copy.deepcopy(SAMPLE_SPARQL_DATA)
