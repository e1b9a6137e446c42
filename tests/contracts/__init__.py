"""Contract tests: graph containers, base ids, wire parsing."""
