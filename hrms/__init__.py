"""Multi-tenant HR/Payroll API: request dispatch, tenancy and credential core."""

__version__ = "0.1.0"
