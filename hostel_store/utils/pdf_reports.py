"""
PDF report generation for the store dashboards.
"""
import io
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Sequence

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from hostel_store.config import settings
from hostel_store.models import Product, Transaction


class PDFReportGenerator:
    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        self.styles.add(ParagraphStyle(
            name='ReportTitle',
            parent=self.styles['Heading1'],
            fontSize=22,
            alignment=TA_CENTER,
            spaceAfter=24,
            textColor=colors.HexColor('#2c3e50')
        ))
        self.styles.add(ParagraphStyle(
            name='ReportSubtitle',
            parent=self.styles['Heading2'],
            fontSize=12,
            alignment=TA_CENTER,
            spaceAfter=16,
            textColor=colors.HexColor('#7f8c8d')
        ))
        self.styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=self.styles['Heading2'],
            fontSize=14,
            spaceBefore=16,
            spaceAfter=8,
            textColor=colors.HexColor('#2980b9')
        ))
        self.styles.add(ParagraphStyle(
            name='NormalText',
            parent=self.styles['Normal'],
            fontSize=10,
            spaceAfter=6
        ))
        self.styles.add(ParagraphStyle(
            name='Footer',
            parent=self.styles['Normal'],
            fontSize=8,
            textColor=colors.gray,
            alignment=TA_CENTER
        ))

    @staticmethod
    def _table_style(header_color: str) -> TableStyle:
        return TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor(header_color)),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, 0), 9),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
            ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 1), (-1, -1), 8),
            ('ALIGN', (1, 1), (-1, -1), 'RIGHT'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.whitesmoke, colors.white]),
        ])

    def generate_sales_report(
        self,
        transactions: Sequence[Transaction],
        report_date: date,
        low_stock: Sequence[Product] = (),
    ) -> bytes:
        """
        Daily sales report: summary, one row per transaction, totals per
        product and the current low-stock list.

        Returns:
            PDF bytes
        """
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=54,
            leftMargin=54,
            topMargin=54,
            bottomMargin=54
        )
        story = []

        story.append(Paragraph(f"Daily Sales Report - {report_date.isoformat()}", self.styles['ReportTitle']))
        story.append(Paragraph(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
                               self.styles['ReportSubtitle']))

        revenue = sum((t.total_amount for t in transactions), Decimal('0'))
        average = revenue / len(transactions) if transactions else Decimal('0')
        units = sum(item.quantity for t in transactions for item in t.items)
        summary_text = f"""
        <b>Summary:</b><br/>
        Transactions: {len(transactions)}<br/>
        Units Sold: {units}<br/>
        Revenue: {revenue:,.2f}<br/>
        Average Transaction: {average:,.2f}<br/>
        """
        story.append(Paragraph(summary_text, self.styles['NormalText']))
        story.append(Spacer(1, 12))

        story.append(Paragraph("Transactions", self.styles['SectionHeader']))
        table_data = [['#', 'Time', 'Student', 'Roll No.', 'Items', 'Total', 'Seller']]
        for t in transactions:
            table_data.append([
                str(t.id),
                t.created_at.strftime('%H:%M'),
                t.student.name if t.student else '',
                t.student.roll_number if t.student else '',
                str(sum(item.quantity for item in t.items)),
                f"{t.total_amount:,.2f}",
                t.seller.full_name if t.seller else '',
            ])
        table = Table(table_data, colWidths=[0.5*inch, 0.6*inch, 1.6*inch, 1*inch, 0.6*inch, 0.9*inch, 1.4*inch])
        table.setStyle(self._table_style('#27ae60'))
        story.append(table)

        story.append(Paragraph("Summary by Product", self.styles['SectionHeader']))
        story.append(self._product_summary_table(transactions))

        if low_stock:
            story.append(Paragraph("Low Stock", self.styles['SectionHeader']))
            low_data = [['Product', 'Category', 'Stock', 'Threshold']]
            for product in low_stock:
                low_data.append([product.name, product.category or '', str(product.stock),
                                 str(product.low_stock_threshold)])
            low_table = Table(low_data, colWidths=[2.5*inch, 1.5*inch, 0.8*inch, 0.8*inch])
            low_table.setStyle(self._table_style('#c0392b'))
            story.append(low_table)

        story.append(Spacer(1, 24))
        story.append(Paragraph(f"{settings.APP_NAME} - Daily Sales Report", self.styles['Footer']))

        doc.build(story)
        buffer.seek(0)
        return buffer.getvalue()

    def _product_summary_table(self, transactions: Sequence[Transaction]) -> Table:
        per_product: Dict[str, Dict] = defaultdict(lambda: {'quantity': 0, 'revenue': Decimal('0')})
        for t in transactions:
            for item in t.items:
                name = item.product.name if item.product else f"Product {item.product_id}"
                per_product[name]['quantity'] += item.quantity
                per_product[name]['revenue'] += item.quantity * item.price

        rows: List[List[str]] = [['Product', 'Units', 'Revenue']]
        for name, stats in sorted(per_product.items(), key=lambda kv: kv[1]['revenue'], reverse=True):
            rows.append([name, str(stats['quantity']), f"{stats['revenue']:,.2f}"])

        table = Table(rows, colWidths=[3*inch, 1*inch, 1.2*inch])
        table.setStyle(self._table_style('#3498db'))
        return table


pdf_generator = PDFReportGenerator()
