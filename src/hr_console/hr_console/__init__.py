"""HR Console package.

Feature modules (users, attendance, leaves, tickets, vehicles, payroll,
activity) each keep a thin Flask controller on top of service/repository
layers.
"""
