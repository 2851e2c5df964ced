"""MintMarket - a REST backend for an NFT marketplace.

This package provides functionality for:
- Minting and browsing NFT records
- Listing, unlisting and buying NFTs
- Following users and searching profiles
"""

__version__ = "1.0.0"
