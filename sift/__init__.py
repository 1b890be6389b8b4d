"""Reconstruct per-test output from interleaved go test -v logs."""
