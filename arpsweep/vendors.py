#!/usr/bin/env python3

"""
Hardware vendor lookup by OUI (the first three bytes of a MAC address).

The vendor data file holds one record per line: six hex digits followed by
the vendor name, e.g. ``AABBCC ExampleCorp``.
"""

import logging
import os
import string
import tempfile

from mac_vendor_lookup import BaseMacLookup, MacLookup

from arpsweep.errors import VendorLoadError

logger = logging.getLogger(__name__)

UNKNOWN_VENDOR = "unknown"
DEFAULT_VENDOR_FILE = "mac-fab.txt"

_HEX = frozenset(string.hexdigits)


def _normalize_prefix(mac):
    if isinstance(mac, (bytes, bytearray)):
        return bytes(mac[:3]).hex().upper()
    digits = "".join(c for c in str(mac) if c not in ":-. ")
    return digits[:6].upper()


class VendorTable:
    """Read-only mapping of OUI prefix to vendor name."""

    def __init__(self, prefixes=None):
        self._prefixes = dict(prefixes or {})

    def __len__(self):
        return len(self._prefixes)

    def __contains__(self, mac):
        return _normalize_prefix(mac) in self._prefixes

    def lookup(self, mac):
        """Returns the vendor for `mac`, or UNKNOWN_VENDOR when the prefix is not known."""
        return self._prefixes.get(_normalize_prefix(mac), UNKNOWN_VENDOR)


def parse_vendor_lines(lines):
    """
    Parses vendor records into a {prefix: vendor} dict.
    Malformed lines are skipped with a warning. When a prefix appears more
    than once, the last record wins.
    """
    prefixes = {}
    for lineno, line in enumerate(lines, 1):
        fields = line.split()
        if not fields or fields[0].startswith("#"):
            continue

        prefix = fields[0]
        if len(prefix) != 6 or not _HEX.issuperset(prefix):
            logger.warning("Skipping vendor line %d: bad prefix %r", lineno, prefix)
            continue
        if len(fields) < 2:
            logger.warning("Skipping vendor line %d: no vendor name", lineno)
            continue

        prefix = prefix.upper()
        if prefix in prefixes:
            logger.debug("Vendor prefix %s redefined on line %d", prefix, lineno)
        prefixes[prefix] = " ".join(fields[1:])
    return prefixes


def read_vendor_source(path):
    """Reads the vendor file. Raises VendorLoadError if it cannot be read."""
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return f.readlines()
    except OSError as e:
        raise VendorLoadError(f"Could not read vendor file '{path}': {e}") from e


def load_vendor_table(source):
    """
    Builds a VendorTable from a path or an iterable of lines.
    An unreadable source is not fatal: a warning is logged and the table is
    empty, so every lookup answers UNKNOWN_VENDOR.
    """
    if isinstance(source, (str, os.PathLike)):
        try:
            source = read_vendor_source(source)
        except VendorLoadError as e:
            logger.warning("%s. Vendors will be reported as '%s'.", e, UNKNOWN_VENDOR)
            return VendorTable()

    table = VendorTable(parse_vendor_lines(source))
    logger.debug("Loaded %d vendor prefixes", len(table))
    return table


def _cache_records_to_lines(records):
    # mac_vendor_lookup caches one "PREFIX:Vendor" record per line
    lines = []
    for record in records:
        if isinstance(record, bytes):
            record = record.decode("utf-8", "replace")
        prefix, _, vendor = record.partition(":")
        vendor = " ".join(vendor.split())
        if len(prefix) != 6 or not _HEX.issuperset(prefix) or not vendor:
            continue
        lines.append(f"{prefix.upper()} {vendor}\n")
    return lines


def mac_lookup_cache_path():
    """Returns where mac_vendor_lookup keeps its downloaded registry."""
    return BaseMacLookup.cache_path


def read_mac_lookup_cache(path=None):
    """
    Reads the mac_vendor_lookup cache and returns its records as vendor file
    lines. Raises VendorLoadError if the cache cannot be read.
    """
    path = path or mac_lookup_cache_path()
    try:
        with open(path, "rb") as cache:
            return _cache_records_to_lines(cache.read().splitlines())
    except OSError as e:
        raise VendorLoadError(f"Could not read vendor cache '{path}': {e}") from e


def update_vendor_file(path):
    """
    Downloads the IEEE OUI registry with mac_vendor_lookup and rewrites it
    into `path` in the vendor file format. Returns the number of records.
    `path` is replaced atomically, and left untouched if nothing usable
    was downloaded.
    """
    path = os.path.abspath(str(path))
    saved_cache_path = BaseMacLookup.cache_path
    BaseMacLookup.cache_path = path + ".cache"
    try:
        MacLookup().update_vendors()
        lines = read_mac_lookup_cache(BaseMacLookup.cache_path)
    except VendorLoadError:
        raise
    except Exception as e:  # mac_vendor_lookup surfaces aiohttp and file errors alike
        raise VendorLoadError(f"Could not update vendor list: {e}") from e
    finally:
        BaseMacLookup.cache_path = saved_cache_path

    if not lines:
        raise VendorLoadError(f"Downloaded vendor list is empty, keeping '{path}'")

    try:
        fd, tmp_path = tempfile.mkstemp(dir=os.path.dirname(path), prefix=".mac-fab-")
    except OSError as e:
        raise VendorLoadError(f"Could not write vendor file '{path}': {e}") from e
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as out:
            out.writelines(lines)
        os.replace(tmp_path, path)
    except OSError as e:
        os.unlink(tmp_path)
        raise VendorLoadError(f"Could not write vendor file '{path}': {e}") from e

    logger.info("Wrote %d vendor prefixes to %s", len(lines), path)
    return len(lines)
