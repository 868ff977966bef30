"""Flavor survey: ranked ballots, weighted tallies and results views."""
