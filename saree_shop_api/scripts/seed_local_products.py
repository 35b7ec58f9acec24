import argparse, json
from typing import List

from app.localstore.json_store import LocalFallbackStore
from app.settings import settings


def load_products(path: str) -> List[dict]:
    with open(path, 'r', encoding='utf-8') as f:
        doc = json.load(f)
    products = doc.get('products') if isinstance(doc, dict) else doc
    if not isinstance(products, list):
        raise SystemExit(f"{path}: expected a list or {{\"products\": [...]}}")
    out = []
    for p in products:
        pid = str(p.get('id') or '').strip()
        if not pid:
            print(f"skipping product without id: {p.get('title') or p.get('name')!r}")
            continue
        variants = p.get('product_variants') or []
        for v in variants:
            v.setdefault('product_id', pid)
            v['stock_quantity'] = max(0, int(v.get('stock_quantity') or 0))
        out.append({**p, 'id': pid, 'product_variants': variants})
    return out


def seed(products: List[dict], data_dir: str, replace: bool = False) -> int:
    store = LocalFallbackStore(data_dir)
    existing = [] if replace else store.read_products()
    incoming = {p['id'] for p in products}
    merged = products + [p for p in existing if str(p.get('id')) not in incoming]
    store.write_products(merged)
    print(f"Seeded {len(products)} products ({len(merged)} total) -> {store.dir}")
    return len(merged)


if __name__ == "__main__":
    ap = argparse.ArgumentParser(description='Load products into the local fallback catalog')
    ap.add_argument('--path', required=True, help='JSON file with products and their product_variants')
    ap.add_argument('--data-dir', default=str(settings.data_dir))
    ap.add_argument('--replace', action='store_true', help='drop existing local products first')
    args = ap.parse_args()
    seed(load_products(args.path), args.data_dir, args.replace)
