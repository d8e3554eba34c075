"""Tests for report module.

| Test File      | Test Classes               | Tested Constructs                              | Tested Functionalities         |
|----------------|----------------------------|------------------------------------------------|--------------------------------|
| test_writer.py | OutputTest, WriteReportTest | JsonOutput, TextOutput, MsgpackOutput, write_report() | Formats, destinations, errors |
"""
