"""
Pure payslip computation for the payroll module.

No I/O.  Each component is rounded half-up to two places before it is
summed, so run totals equal the sum of the stored item figures exactly.
"""

from decimal import Decimal

from ledger_kernel.db.types import ZERO, round_money
from ledger_modules.payroll.models import Payslip


def compute_payslip(
    monthly_basic: Decimal,
    monthly_gross: Decimal | None = None,
    house_rent_percent: Decimal | None = None,
    medical_allowance: Decimal | None = None,
    conveyance_allowance: Decimal | None = None,
    pf_employee_percent: Decimal | None = None,
    pf_employer_percent: Decimal | None = None,
    tax_monthly: Decimal | None = None,
) -> Payslip:
    """
    Compute one employee's pay for a run from a salary profile.

        house_rent  = basic * house_rent_percent
        gross       = monthly_gross if set (non-zero),
                      else basic + house_rent + medical + conveyance
        pf_employee = basic * pf_employee_percent
        deductions  = pf_employee + tax_monthly
        net         = gross - deductions

    The employer PF share is recorded but not deducted.  Missing components
    count as zero.
    """
    basic = round_money(monthly_basic)
    house_rent = round_money(basic * (house_rent_percent or ZERO))
    medical = round_money(medical_allowance or ZERO)
    conveyance = round_money(conveyance_allowance or ZERO)

    if monthly_gross:
        gross = round_money(monthly_gross)
    else:
        gross = basic + house_rent + medical + conveyance

    pf_employee = round_money(basic * (pf_employee_percent or ZERO))
    pf_employer = round_money(basic * (pf_employer_percent or ZERO))
    tax = round_money(tax_monthly or ZERO)
    deductions = pf_employee + tax

    return Payslip(
        basic=basic,
        house_rent=house_rent,
        medical_allowance=medical,
        conveyance_allowance=conveyance,
        gross_pay=gross,
        total_earnings=gross,
        pf_employee=pf_employee,
        pf_employer=pf_employer,
        tax=tax,
        total_deductions=deductions,
        net_pay=gross - deductions,
    )
