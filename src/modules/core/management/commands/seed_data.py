from __future__ import annotations

from decimal import Decimal

from django.core.management.base import BaseCommand

from modules.products.models import Product

CATALOG = [
    # electronics
    ("무선 블루투스 이어폰", "고음질 노이즈 캔슬링 기능, 30시간 재생", "89000", "electronics", 150),
    ("스마트워치 프로", "건강 모니터링 및 운동 추적 기능", "320000", "electronics", 80),
    ("휴대용 보조배터리 20000mAh", "고속 충전 지원, 3개 포트", "45000", "electronics", 200),
    ("무선 마우스", "인체공학적 디자인, 조용한 클릭", "35000", "electronics", 120),
    ("USB-C 멀티 허브", "7in1 확장 포트, 4K 지원", "52000", "electronics", 95),
    # clothing
    ("면 100% 기본 티셔츠", "심플한 디자인, 5가지 컬러", "25000", "clothing", 300),
    ("후드 집업 자켓", "부드러운 안감, 캐주얼 스타일", "68000", "clothing", 150),
    ("청바지 슬림핏", "신축성 좋은 데님, 남녀공용", "79000", "clothing", 180),
    ("운동용 레깅스", "흡수력 좋은 원단, 요가/헬스", "42000", "clothing", 220),
    # books
    ("클린 코드", "소프트웨어 장인 정신의 바이블", "33000", "books", 50),
    ("이펙티브 타입스크립트", "타입스크립트 활용법 62가지", "28000", "books", 60),
    ("HTTP 완벽 가이드", "웹 개발자를 위한 필수서", "45000", "books", 40),
    # food
    ("프리미엄 원두 커피 1kg", "산미와 바디감의 균형, 중배전", "28000", "food", 100),
    ("유기농 아몬드 500g", "무염 로스팅, 신선한 견과", "18000", "food", 150),
    ("올리브 오일 엑스트라 버진", "스페인 직수입, 요리/샐러드용", "35000", "food", 80),
    # sports
    ("요가 매트 10mm", "두꺼운 쿠션, 미끄럼 방지", "45000", "sports", 90),
    ("덤벨 세트 10kg", "조절식 무게, 홈트레이닝", "85000", "sports", 65),
    # beauty
    ("비타민C 세럼 30ml", "피부 톤 개선, 저자극 포뮬러", "38000", "beauty", 120),
    ("선크림 SPF50+ PA++++", "끈적임 없는 텍스처, 50ml", "22000", "beauty", 200),
    # home
    ("디퓨저 세트", "천연 에센셜 오일 포함, 200ml", "32000", "home", 110),
]


class Command(BaseCommand):
    help = "Seed database with the development product catalog."

    def handle(self, *args, **options):
        created = self._seed_products()
        self.stdout.write(self.style.SUCCESS(f"Seed completed: products={created}"))

    def _seed_products(self) -> int:
        created = 0
        for name, description, price, category, stock in CATALOG:
            _, was_created = Product.objects.get_or_create(
                name=name,
                defaults={
                    "description": description,
                    "price": Decimal(price),
                    "category": category,
                    "stock_quantity": stock,
                    "is_active": True,
                },
            )
            created += int(was_created)
        return created
