"""aid_reporting package.

Contains modules for reading a financial-aid star schema (fact transactions
plus recipient, country, sector and provider dimensions) out of MongoDB,
cleaning and joining it, and computing the analytical aid reports.

Architecture:
- Fact and dimension collections are loaded into Dask/pandas frames
- A grouping engine (with CUBE rollups) and a window-function engine run
  in-memory over pandas
- Pydantic models describe source rows and report output rows
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
