"""
NCBI taxonomy lookups and resolution of a taxon to the set of tax IDs to keep.

TaxDump reads an extracted taxdump.tar.gz directory (nodes.dmp, names.dmp).
Parent links are stored as tax ID strings and descendants are collected
breadth-first, so deep lineages never hit the recursion limit.
"""

import csv
import os
from collections import defaultdict, deque

import pandas as pd

from gdl.errors import AmbiguousName, ConfigurationError, TaxonNotFound, TaxonomyLoadError

SCIENTIFIC_NAME = "scientific name"


def read_dmp(path, columns, names):
    """Read selected columns of a `\\t|\\t` delimited .dmp file as strings."""
    if not os.path.exists(path):
        raise TaxonomyLoadError(f"Unable to load taxdump file {path}")
    # fields are separated by "\t|\t", so the values sit at the even tab positions
    try:
        df = pd.read_csv(
            path,
            sep="\t",
            header=None,
            usecols=columns,
            dtype=str,
            na_filter=False,
            quoting=csv.QUOTE_NONE,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
        raise TaxonomyLoadError(f"Unable to parse taxdump file {path}: {e}") from e
    return df.set_axis(names, axis=1)


class TaxDump:
    def __init__(self, parents, names):
        """
        :param parents: {tax_id: parent_tax_id}
        :param names: {tax_id: scientific name}
        """
        self.parents = dict(parents)
        self.names = dict(names)
        self.children = defaultdict(list)
        for tax_id, parent in self.parents.items():
            if tax_id != parent:
                self.children[parent].append(tax_id)
        self._by_name = defaultdict(set)
        for tax_id, name in self.names.items():
            self._by_name[name].add(tax_id)

    @classmethod
    def load(cls, taxdump_path):
        nodes = read_dmp(os.path.join(taxdump_path, "nodes.dmp"), [0, 2], ["tax_id", "parent"])
        names = read_dmp(os.path.join(taxdump_path, "names.dmp"), [0, 2, 6], ["tax_id", "name", "name_class"])
        names = names[names["name_class"] == SCIENTIFIC_NAME]
        return cls(
            zip(nodes["tax_id"], nodes["parent"]),
            zip(names["tax_id"], names["name"]),
        )

    def __len__(self):
        return len(self.parents)

    def name(self, tax_id):
        return self.names.get(tax_id)

    def find_all_by_name(self, name):
        return set(self._by_name.get(name, ()))

    def descendants(self, tax_id):
        """All tax IDs below tax_id, not including tax_id itself."""
        seen = {tax_id}
        queue = deque([tax_id])
        while queue:
            for child in self.children.get(queue.popleft(), ()):
                if child not in seen:
                    seen.add(child)
                    queue.append(child)
        seen.discard(tax_id)
        return seen


def resolve_tax_id(taxonomy, tax_id=None, tax_name=None):
    """
    Turn exactly one of tax_id / tax_name into the root tax ID.

    A tax_id is used verbatim, it is not looked up. A name must match exactly one
    scientific name.
    """
    if (tax_id is None) == (tax_name is None):
        raise ConfigurationError("Either --tax_id or --tax_name must be provided, but not both")
    if tax_id is not None:
        return tax_id

    matches = taxonomy.find_all_by_name(tax_name)
    if not matches:
        raise TaxonNotFound(tax_name)
    if len(matches) > 1:
        raise AmbiguousName(tax_name, matches)
    return next(iter(matches))


def descendant_set(taxonomy, root, include_descendants=True):
    if not include_descendants:
        return frozenset([root])
    return frozenset(taxonomy.descendants(root)) | {root}
