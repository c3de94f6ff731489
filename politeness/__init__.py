"""
Politeness classification for short texts.

Text -> simplified BERT-style encoding -> pretrained classifier -> one of
Polite / SomewhatPolite / Neutral / Impolite with a fixed description.
"""

__version__ = "0.1.0"
