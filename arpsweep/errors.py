#!/usr/bin/env python3

"""Exceptions raised by the scanner."""


class ScanError(Exception):
    """Base class for all scan errors."""


class PreconditionError(ScanError):
    """The interface is missing, down, or has no usable IPv4 address."""


class CaptureOpenError(ScanError):
    """The capture session could not be opened on the device."""


class WriteError(ScanError):
    """A request frame could not be written to the capture session."""


class VendorLoadError(ScanError):
    """The vendor data source could not be read."""


class SerializationError(ScanError):
    """A frame could not be built from the given fields."""
