"""Benchmark harness for twinbench.

Runs an identical battery of workloads against two candidate
executables, reduces the repeated samples to summaries and
adjudicates a winner per metric and overall.
"""
