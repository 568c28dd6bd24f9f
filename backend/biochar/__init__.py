"""Biochar supply chain tracking and CORC issuance backend."""
