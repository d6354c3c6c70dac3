"""
BlueCarbon Registry - CLI Package
===================================
Entry point: `bluecarbon` (blue_carbon.cli.main:app).
"""
