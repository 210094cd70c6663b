"""
Ledger kernel: persistence, error taxonomy, logging and workflow primitives
shared by the order, stock, transfer, payroll and allowance ledgers.
"""
