"""
VendorHub Media Backend — Imaging Package
===========================================

What:  Pure image transformations: size policies, quality search, normalizer.
Why:   Kept free of I/O and HTTP so it can be exercised with plain bytes.

Module Inventory:
    - policy.py:     ImageKind, SizePolicy table, OutputFormat catalogue
    - search.py:     Binary quality search against a byte ceiling
    - normalizer.py: Decode → orient → resize → encode pipeline
"""

from vendorhub.imaging.normalizer import (
    EncodedImage,
    ImageNormalizer,
    image_normalizer,
    normalize_image,
)
from vendorhub.imaging.policy import (
    DEFAULT_POLICIES,
    ImageKind,
    OutputFormat,
    SizePolicy,
    policy_for,
)
from vendorhub.imaging.search import QualitySearchResult, search_quality

__all__ = [
    "DEFAULT_POLICIES",
    "EncodedImage",
    "ImageKind",
    "ImageNormalizer",
    "OutputFormat",
    "QualitySearchResult",
    "SizePolicy",
    "image_normalizer",
    "normalize_image",
    "policy_for",
    "search_quality",
]
