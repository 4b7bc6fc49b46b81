# product_scout/report/json_report.py

"""
Генерация JSON-отчёта с найденными URL товаров.
"""
import json
from pathlib import Path
from typing import Dict, List, Optional


def render_json(results: Dict[str, List[str]], output_path: Path | str, indent: Optional[int] = 2) -> Path:
    """
    Сохраняет результаты обхода в формате JSON по указанному пути.

    :param results: словарь домен -> список URL товаров
    :param output_path: путь к JSON-файлу
    :param indent: отступ JSON (None: в одну строку)
    :return: Path сохранённого файла
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "domains": [
            {"domain": domain, "product_count": len(urls), "product_urls": urls}
            for domain, urls in results.items()
        ],
        "total_products": sum(len(urls) for urls in results.values()),
    }

    with output.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=indent)

    return output
