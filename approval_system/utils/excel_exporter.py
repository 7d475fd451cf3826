import pandas as pd
from io import BytesIO
from typing import List, Dict, Any
from datetime import date, datetime
from decimal import Decimal
from fastapi import HTTPException, status
from fastapi.responses import StreamingResponse
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter
import logging

logger = logging.getLogger(__name__)

APPLICATION_EXPORT_FIELDS = {
    "app_no": "申请单号",
    "app_type_label": "申请类型",
    "title": "标题",
    "applicant_name": "申请人",
    "dept_name": "部门",
    "status_label": "状态",
    "current_node": "当前节点",
    "days": "请假天数",
    "amount": "报销金额",
    "latest_approver_name": "最近审批人",
    "latest_action_label": "最近审批结果",
    "submit_time": "提交时间",
    "finish_time": "完成时间",
}

# Columns summed in the TOTAL row
SUM_FIELDS = ("days", "amount")


class DataExportService:
    def prepare_data_for_export(self, data: List[Dict[str, Any]], fields_mapping: Dict[str, str]) -> List[Dict[str, Any]]:
        """Map row keys to display names and format values for a sheet"""
        exported_data = []

        for item in data:
            row = {}
            for field_key, display_name in fields_mapping.items():
                value = item.get(field_key)
                if value is None:
                    value = ""
                elif isinstance(value, datetime):
                    value = value.strftime("%Y-%m-%d %H:%M:%S")
                elif isinstance(value, date):
                    value = value.strftime("%Y-%m-%d")
                elif isinstance(value, Decimal):
                    value = float(value)
                row[display_name] = value
            exported_data.append(row)

        return exported_data

    def build_excel(
        self,
        data: List[Dict[str, Any]],
        fields_mapping: Dict[str, str],
        sheet_name: str = "Data",
        sum_fields: tuple = (),
    ) -> BytesIO:
        """Workbook with a styled header, borders and a TOTAL row for ``sum_fields``"""
        rows = self.prepare_data_for_export(data, fields_mapping)
        df = pd.DataFrame(rows, columns=list(fields_mapping.values()))

        sum_columns = {
            idx: fields_mapping[key]
            for idx, key in enumerate(fields_mapping, 1)
            if key in sum_fields
        }

        output = BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=sheet_name, index=False)
            worksheet = writer.sheets[sheet_name]

            header_font = Font(bold=True, color="FFFFFF")
            header_fill = PatternFill("solid", fgColor="366092")
            thin_border = Border(
                left=Side(style="thin"),
                right=Side(style="thin"),
                top=Side(style="thin"),
                bottom=Side(style="thin"),
            )
            sum_font = Font(bold=True, size=12)
            sum_fill = PatternFill("solid", fgColor="D9D9D9")

            max_row = len(df) + 1  # +1 for header
            max_col = len(df.columns)

            for col in range(1, max_col + 1):
                header_cell = worksheet.cell(row=1, column=col)
                header_cell.font = header_font
                header_cell.fill = header_fill
                header_cell.border = thin_border
                header_cell.alignment = Alignment(horizontal="center")

            for row in range(2, max_row + 1):
                for col in range(1, max_col + 1):
                    cell = worksheet.cell(row=row, column=col)
                    cell.border = thin_border
                    if col in sum_columns:
                        cell.number_format = "#,##0.00"

            if sum_columns and len(df):
                sum_row_number = max_row + 2  # Leave one empty row
                label_cell = worksheet.cell(row=sum_row_number, column=1, value="TOTAL")
                label_cell.font = sum_font
                label_cell.fill = sum_fill
                label_cell.border = thin_border

                for col_idx, col_name in sum_columns.items():
                    column_sum = float(pd.to_numeric(df[col_name], errors="coerce").fillna(0).sum())
                    sum_cell = worksheet.cell(row=sum_row_number, column=col_idx, value=column_sum)
                    sum_cell.font = sum_font
                    sum_cell.fill = sum_fill
                    sum_cell.number_format = "#,##0.00"
                    sum_cell.border = thin_border

            # Auto-adjust column widths
            for col_idx in range(1, max_col + 1):
                letter = get_column_letter(col_idx)
                values = [str(c.value) for c in worksheet[letter] if c.value is not None]
                max_length = max((len(v) for v in values), default=8)
                worksheet.column_dimensions[letter].width = min(max_length + 4, 50)

        output.seek(0)
        return output

    def export_to_excel(
        self,
        data: List[Dict[str, Any]],
        fields_mapping: Dict[str, str],
        filename: str,
        sheet_name: str = "Data",
        sum_fields: tuple = (),
    ) -> StreamingResponse:
        try:
            output = self.build_excel(data, fields_mapping, sheet_name, sum_fields)
            logger.info(f"Exported {len(data)} rows to {filename}.xlsx")
            return StreamingResponse(
                output,
                media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                headers={"Content-Disposition": f"attachment; filename={filename}.xlsx"},
            )
        except Exception as e:
            logger.error(f"Error exporting to Excel: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to export data to Excel"
            )
