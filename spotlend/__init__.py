"""
spotlend: a zero-fee constant product reserve pool and a lending pool that
values collateral at the reserve pool's instantaneous price.
"""

__version__ = "0.1.0"
