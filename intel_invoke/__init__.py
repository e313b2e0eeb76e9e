"""intel-invoke - transparent execution shim with invocation telemetry."""

__version__ = "0.1.0"
