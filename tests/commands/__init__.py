"""Tests for command implementation modules.

| Test File    | Test Classes            | Tested Constructs    | Tested Functionalities                           |
|--------------|-------------------------|----------------------|--------------------------------------------------|
| test_scan.py | ScanTest, CollectorTest | do_scan(), Collector | Grouping, size policy, skips, progress, failures |
"""
