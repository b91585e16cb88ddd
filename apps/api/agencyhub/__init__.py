"""AgencyHub API - client request management for digital agencies."""
