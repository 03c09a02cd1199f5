"""BookDash - Book Tracking Application Package

This package contains the application modules including:
- REST API application and routers (api.py, routers/)
- Data access layer (database.py, repositories/)
- Authentication and authorization (security.py)
- Client service layer (client/)
- Command line interface (cli.py)
"""

__version__ = "1.0.0"
