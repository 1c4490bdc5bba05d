"""
Canonical KPI rubric for the workshop director (Giám đốc phân xưởng) role.

Ids, codes and units are generated from position when the rubric is built:
category ``cat_<n>``, item code ``<n>.<m>`` (also used as the item id) and
unit ``<max_points>đ``. The item maxima add up to 100.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from .models import Rubric
from .schemas import RubricInput


def _criteria(good: str, average: str, weak: str) -> dict[str, dict[str, Any]]:
    return {
        "GOOD": {"label": "Tốt", "description": good, "score_percent": 1.0},
        "AVERAGE": {"label": "Trung bình", "description": average, "score_percent": 0.7},
        "WEAK": {"label": "Yếu", "description": weak, "score_percent": 0.0},
    }


RAW_RUBRIC: dict[str, Any] = {
    "name": "KPI Giám đốc phân xưởng",
    "categories": [
        {
            "name": "1. VẬN HÀNH",
            "items": [
                {
                    "name": "Kiểm soát sự cố",
                    "max_points": 9,
                    "checklist": [
                        "Theo dõi các ca vận hành, chủ động điều chỉnh khi có dấu hiệu bất thường",
                        "Chỉ đạo xử lý sự cố đúng quy trình, đảm bảo an toàn và hạn chế tổn thất",
                        "Phân tích nguyên nhân gốc rễ và triển khai biện pháp ngăn ngừa tái diễn",
                    ],
                    "criteria": _criteria(
                        "Không có gián đoạn cấp hơi",
                        "Có sự cố, nhưng không phải bồi thường",
                        "Để xảy ra sự gián đoạn cấp hơi phải bồi thường",
                    ),
                },
                {
                    "name": "Chất lượng dịch vụ",
                    "max_points": 10,
                    "checklist": [
                        "Đảm bảo chất lượng hơi đầu ra ổn định theo tiêu chuẩn khách hàng",
                        "Giám sát áp suất, nhiệt độ, chất lượng đạt chuẩn",
                        "Không để phát sinh khiếu nại hoặc phản ánh tiêu cực từ khách hàng",
                    ],
                    "criteria": _criteria(
                        "Ổn định, không có khiếu nại của khách hàng",
                        "Có chênh lệch nhỏ so với tiêu chuẩn",
                        "Bị khách hàng phản ánh về chất lượng",
                    ),
                },
                {
                    "name": "Kiểm soát tiêu hao",
                    "max_points": 9,
                    "checklist": [
                        "Giám sát tiêu hao nhiên liệu theo ca/kíp và phát hiện chênh lệch bất thường",
                        "Theo dõi tiêu hao điện, nước, hóa chất và cảnh báo khi vượt định mức",
                        "Triển khai giải pháp tối ưu hóa hiệu suất đốt để giảm lãng phí",
                    ],
                    "criteria": _criteria(
                        "Tiêu hao nhiên liệu ≤ định mức",
                        "Vượt định mức cho phép (+1–5%)",
                        "Vượt quá định mức cho phép (>10%)",
                    ),
                },
            ],
        },
        {
            "name": "2. AN TOÀN",
            "items": [
                {
                    "name": "An toàn – PCCC – Môi trường",
                    "max_points": 9,
                    "checklist": [
                        "Giám sát tuân thủ đầy đủ quy định ATLĐ và PCCC theo ca/kíp",
                        "Kiểm soát khí thải, nước thải đảm bảo đạt chuẩn môi trường",
                        "Chỉ đạo khắc phục ngay khi có vi phạm và tổ chức huấn luyện lại",
                    ],
                    "criteria": _criteria(
                        "Không có sự cố Khí Thải, ATLĐ & PCCC",
                        "Có vi phạm nhỏ, đã khắc phục ngay",
                        "Vi phạm nghiêm trọng hoặc tái diễn nhiều lần",
                    ),
                },
                {
                    "name": "Kỷ luật – BHLĐ – Giám sát nội quy",
                    "max_points": 9,
                    "checklist": [
                        "Giám sát việc sử dụng đầy đủ PPE/BHLĐ trong toàn bộ thời gian làm việc",
                        "Kiểm soát tuân thủ nội quy, thời gian làm việc và khu vực hạn chế",
                        "Xử lý vi phạm đúng thẩm quyền và báo cáo kịp thời cho cấp trên",
                    ],
                    "criteria": _criteria(
                        "Đảm bảo 100% nhân sự tuân thủ nội quy",
                        "Nhắc nhở một số trường hợp vi phạm nhỏ",
                        "Có nhân sự vi phạm kỷ luật nghiêm trọng",
                    ),
                },
            ],
        },
        {
            "name": "3. THIẾT BỊ",
            "items": [
                {
                    "name": "Giám sát kiểm tra máy móc, hạ tầng",
                    "max_points": 9,
                    "checklist": [
                        "Thực hiện kiểm tra – đánh giá hạ tầng nhà máy theo tần suất định kỳ",
                        "Kiểm tra tình trạng thiết bị lò hàng ngày và ghi nhận đầy đủ",
                        "Phát hiện sớm hư hỏng và đề xuất sửa chữa kịp thời",
                    ],
                    "criteria": _criteria(
                        "Thực hiện kiểm tra đầy đủ 100% theo lịch tháng",
                        "Thực hiện kiểm tra đạt 70–80% kế hoạch",
                        "Thực hiện kiểm tra dưới 70% kế hoạch",
                    ),
                },
                {
                    "name": "Tuân thủ PM/CM – quản lý bảo trì",
                    "max_points": 9,
                    "checklist": [
                        "Tổ chức và tuân thủ bảo trì định kỳ theo kế hoạch (ngưng 24 giờ theo HĐ)",
                        "Nghiệm thu chất lượng bảo trì theo tiêu chuẩn kỹ thuật",
                        "Đề xuất thay thế hoặc nâng cấp thiết bị khi có dấu hiệu suy giảm",
                    ],
                    "criteria": _criteria(
                        "Hoàn thành ≥98% hạng mục bảo trì",
                        "Hoàn thành 70–80% hạng mục bảo trì",
                        "Không ngừng máy bảo trì đúng HĐ",
                    ),
                },
                {
                    "name": "Kiểm soát 5S",
                    "max_points": 9,
                    "checklist": [
                        "Phát hiện và ghi nhận sai phạm 5S của các ca/kíp",
                        "Xử lý báo cáo đúng mức độ và đúng thời gian yêu cầu",
                        "Huấn luyện lại và đề xuất cải tiến khi lỗi tái diễn",
                    ],
                    "criteria": _criteria(
                        "Kiểm soát tốt 5S, không lỗi tái diễn",
                        "Còn lỗi vi phạm nhẹ, ít tái diễn",
                        "5S không đạt, lỗi tái diễn thường xuyên",
                    ),
                },
                {
                    "name": "Báo cáo bảo trì, thiết bị định kỳ và đột xuất",
                    "max_points": 9,
                    "checklist": [
                        "Gửi đầy đủ báo cáo tổng hợp tuần/tháng đúng thời hạn",
                        "Báo cáo chi tiết tình trạng thiết bị – bảo trì định kỳ và đột xuất",
                        "Phân tích xu hướng hư hỏng và cảnh báo nguy cơ trước khi xảy ra",
                    ],
                    "criteria": _criteria(
                        "Báo cáo đầy đủ, chính xác và đúng thời hạn",
                        "Báo cáo trễ nhẹ hoặc phải nhắc nhở",
                        "Không gửi báo cáo hoặc báo cáo không đúng",
                    ),
                },
            ],
        },
        {
            "name": "4. NHÂN SỰ",
            "items": [
                {
                    "name": "Quản lý nhân sự",
                    "max_points": 9,
                    "checklist": [
                        "Sắp xếp – điều phối nhân sự đảm bảo đủ quân số cho mọi ca",
                        "Xử lý nghỉ đột xuất hoặc thiếu người mà không ảnh hưởng vận hành",
                        "Đánh giá năng lực – thái độ và đề xuất luân chuyển phù hợp",
                    ],
                    "criteria": _criteria(
                        "Đảm bảo đủ nhân sự, không trống ca",
                        "Thiếu hụt nhân sự nhưng đã xử lý ổn thỏa",
                        "Thiếu nhân sự gây ảnh hưởng vận hành",
                    ),
                },
                {
                    "name": "Đào tạo",
                    "max_points": 9,
                    "checklist": [
                        "Đào tạo nhân viên mới và nhân viên chuyển vị trí (có hồ sơ đào tạo)",
                        "Truyền đạt đầy đủ quy trình và các thay đổi mới",
                        "Đánh giá năng lực định kỳ và huấn luyện sau sự cố",
                    ],
                    "criteria": _criteria(
                        "100% nhân viên mới được đào tạo đạt yêu cầu",
                        "Đào tạo đạt yêu cầu ở mức khá (70-94%)",
                        "Công tác đào tạo chưa đạt yêu cầu (<70%)",
                    ),
                },
            ],
        },
    ],
}


@lru_cache(maxsize=1)
def default_rubric() -> Rubric:
    """The canonical rubric, built once per process."""
    return RubricInput.model_validate(RAW_RUBRIC).to_rubric()
