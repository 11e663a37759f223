"""Excel exports of owner and shift reports"""
import openpyxl
from openpyxl.styles import Font, Alignment, PatternFill
from openpyxl.utils import get_column_letter
from django.http import HttpResponse

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

header_font = Font(bold=True, size=12)
title_font = Font(bold=True, size=16)
header_fill = PatternFill(start_color='DDDDDD', end_color='DDDDDD', fill_type='solid')


def _new_sheet(wb, title, heading, subheading, headers):
    ws = wb.active
    ws.title = title

    last_column = get_column_letter(max(len(headers), 2))
    ws['A1'] = heading
    ws['A1'].font = title_font
    ws['A2'] = subheading
    ws.merge_cells(f'A1:{last_column}1')
    ws.merge_cells(f'A2:{last_column}2')

    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=4, column=col, value=header)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal='center')
    return ws


def _autosize(ws):
    for index, column in enumerate(ws.columns, 1):
        max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        ws.column_dimensions[get_column_letter(index)].width = min(max_length + 2, 30)


def _money(value):
    return float(value or 0)


def xlsx_response(wb, filename):
    response = HttpResponse(content_type=XLSX_CONTENT_TYPE)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    wb.save(response)
    return response


Z_REPORT_ROWS = [
    ('Orders', 'order_count', False),
    ('Cancelled orders', 'cancelled_count', False),
    ('Refunds', 'refund_count', False),
    ('Gross sales', 'gross_sales', True),
    ('Subtotal', 'gross_subtotal', True),
    ('Discounts', 'total_discounts', True),
    ('Service charge', 'gross_service_charge', True),
    ('Tax', 'gross_tax', True),
    ('Refunds total', 'refunds_total', True),
    ('Net sales', 'net_sales', True),
    ('Net tax', 'net_tax', True),
    ('Cash payments (net)', 'net_cash_payments', True),
    ('Card payments (net)', 'net_card_payments', True),
    ('Mobile payments (net)', 'net_mobile_payments', True),
    ('Opening cash', 'opening_cash', True),
    ('Cash in', 'cash_in', True),
    ('Cash out', 'cash_out', True),
    ('Expected cash', 'expected_cash', True),
    ('Closing cash', 'closing_cash', True),
    ('Cash difference', 'cash_difference', True),
    ('Average order value', 'average_order_value', True),
]


def z_report_workbook(report, restaurant):
    wb = openpyxl.Workbook()
    closed = report['closed_at'].strftime('%Y-%m-%d %H:%M') if report.get('closed_at') else 'open'
    ws = _new_sheet(
        wb, "Z Report",
        f"{restaurant.name} - Z Report",
        f"Branch: {report['branch_name']} | Cashier: {report['cashier_email']} | "
        f"Opened: {report['opened_at'].strftime('%Y-%m-%d %H:%M')} | Closed: {closed}",
        ['Item', 'Value'],
    )

    row = 5
    for label, key, is_money in Z_REPORT_ROWS:
        value = report.get(key)
        ws.cell(row=row, column=1, value=label)
        ws.cell(row=row, column=2, value=_money(value) if is_money else value)
        if key in ('net_sales', 'cash_difference'):
            ws.cell(row=row, column=1).font = header_font
            ws.cell(row=row, column=2).font = header_font
        row += 1

    _autosize(ws)
    return wb


def sales_summary_workbook(rows, start_date, end_date, restaurant):
    """One row per day: orders, gross, refunds, net, tax and payment buckets"""
    wb = openpyxl.Workbook()
    headers = ['Date', 'Orders', 'Gross Sales', 'Refunds', 'Net Sales', 'Tax', 'Cash', 'Card', 'Mobile']
    ws = _new_sheet(
        wb, "Sales Summary",
        f"{restaurant.name} - Sales Summary Report",
        f"Period: {start_date.strftime('%Y-%m-%d')} to {end_date.strftime('%Y-%m-%d')}",
        headers,
    )

    keys = ['order_count', 'gross_sales', 'refunds_total', 'net_sales', 'tax', 'cash', 'card', 'mobile']
    totals = {key: 0 for key in keys}
    row = 5
    for day in rows:
        ws.cell(row=row, column=1, value=day['date'].strftime('%Y-%m-%d'))
        for col, key in enumerate(keys, 2):
            value = day[key] if key == 'order_count' else _money(day[key])
            ws.cell(row=row, column=col, value=value)
            totals[key] += value
        row += 1

    row += 1
    ws.cell(row=row, column=1, value="TOTALS:").font = header_font
    for col, key in enumerate(keys, 2):
        ws.cell(row=row, column=col, value=round(totals[key], 3)).font = header_font

    _autosize(ws)
    return wb


def cash_differences_workbook(rows, start_date, end_date, restaurant):
    wb = openpyxl.Workbook()
    headers = ['Closed At', 'Branch', 'Cashier', 'Opening Cash', 'Expected Cash', 'Closing Cash', 'Difference']
    ws = _new_sheet(
        wb, "Cash Differences",
        f"{restaurant.name} - Cash Differences",
        f"Period: {start_date.strftime('%Y-%m-%d')} to {end_date.strftime('%Y-%m-%d')}",
        headers,
    )

    row = 5
    total_difference = 0
    for shift in rows:
        ws.cell(row=row, column=1, value=shift['closed_at'].strftime('%Y-%m-%d %H:%M') if shift['closed_at'] else '')
        ws.cell(row=row, column=2, value=shift['branch_name'])
        ws.cell(row=row, column=3, value=shift['cashier_email'])
        ws.cell(row=row, column=4, value=_money(shift['opening_cash']))
        ws.cell(row=row, column=5, value=_money(shift['expected_cash']))
        ws.cell(row=row, column=6, value=_money(shift['closing_cash']))
        ws.cell(row=row, column=7, value=_money(shift['cash_difference']))
        total_difference += _money(shift['cash_difference'])
        row += 1

    row += 1
    ws.cell(row=row, column=6, value="TOTAL:").font = header_font
    ws.cell(row=row, column=7, value=round(total_difference, 3)).font = header_font

    _autosize(ws)
    return wb
