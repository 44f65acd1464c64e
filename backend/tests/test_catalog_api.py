"""Catalog API tests - categories, menu items, variations and addons."""

from restopos.models.catalog import MenuItem


class TestCategories:
    def test_create_category_sets_image_from_type(self, client, manager_headers):
        resp = client.post(
            "/api/categories/add-category",
            json={"name": "Soft Drinks", "type": "NON_ALCOHOLIC"},
            headers=manager_headers,
        )
        assert resp.status_code == 201
        category = resp.json()["category"]
        assert category["categoryType"] == "NON_ALCOHOLIC"
        assert category["image"] == "/static/categories/non-alcoholic.png"
        assert category["state"] == "active"

    def test_update_type_changes_image(self, client, manager_headers, category):
        resp = client.put(
            f"/api/categories/update/{category.id}",
            json={"categoryType": "DESSERT"},
            headers=manager_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["category"]["image"] == "/static/categories/dessert.png"

    def test_duplicate_name_rejected(self, client, manager_headers, category):
        resp = client.post("/api/categories/add-category", json={"name": "mains"}, headers=manager_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Category 'mains' already exists"

    def test_unknown_type_rejected(self, client, manager_headers):
        resp = client.post(
            "/api/categories/add-category",
            json={"name": "Odd", "type": "FURNITURE"},
            headers=manager_headers,
        )
        assert resp.status_code == 400

    def test_list_filters_by_type(self, client, user_headers, manager_headers, category):
        client.post(
            "/api/categories/add-category",
            json={"name": "Juices", "type": "BEVERAGE"},
            headers=manager_headers,
        )
        resp = client.get("/api/categories/get-all", params={"type": "BEVERAGE"}, headers=user_headers)
        assert [c["name"] for c in resp.json()["categories"]] == ["Juices"]

    def test_category_with_menu_items_cannot_be_deleted(self, client, manager_headers, menu_item):
        resp = client.delete(f"/api/categories/delete/{menu_item.category_id}", headers=manager_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Category still has active menu items"

    def test_delete_empty_category(self, client, manager_headers, category):
        resp = client.delete(f"/api/categories/delete/{category.id}", headers=manager_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/categories/get/{category.id}", headers=manager_headers).status_code == 404


class TestMenuItems:
    def test_create_menu_item_with_variations_and_addons(self, client, manager_headers, category, large_variation):
        addon = client.post(
            "/api/variation/create-addon",
            json={"name": "Extra Cheese", "price": 25},
            headers=manager_headers,
        ).json()["addon"]

        resp = client.post(
            "/api/menu/add-menu",
            json={
                "name": "Margherita",
                "categoryId": category.id,
                "price": 250,
                "vegType": "veg",
                "tags": ["pizza"],
                "variations": [{"variationId": large_variation.id, "price": 120}],
                "addonIds": [addon["id"]],
            },
            headers=manager_headers,
        )
        assert resp.status_code == 201
        item = resp.json()["menuItem"]
        assert item["price"] == 250
        assert item["variations"] == [
            {"variationId": large_variation.id, "variationName": "Large", "price": 120}
        ]
        assert [a["name"] for a in item["addons"]] == ["Extra Cheese"]

    def test_unknown_category(self, client, manager_headers):
        resp = client.post(
            "/api/menu/add-menu",
            json={"name": "Ghost", "categoryId": 999, "price": 10},
            headers=manager_headers,
        )
        assert resp.status_code == 404
        assert resp.json()["message"] == "Category not found"

    def test_negative_price_rejected(self, client, manager_headers, category):
        resp = client.post(
            "/api/menu/add-menu",
            json={"name": "Free Lunch", "categoryId": category.id, "price": -1},
            headers=manager_headers,
        )
        assert resp.status_code == 400

    def test_same_variation_twice_rejected(self, client, manager_headers, category, large_variation):
        resp = client.post(
            "/api/menu/add-menu",
            json={
                "name": "Lassi",
                "categoryId": category.id,
                "price": 60,
                "variations": [
                    {"variationId": large_variation.id, "price": 20},
                    {"variationId": large_variation.id, "price": 30},
                ],
            },
            headers=manager_headers,
        )
        assert resp.status_code == 400

    def test_update_replaces_variations(self, client, manager_headers, menu_item, large_variation):
        resp = client.put(
            f"/api/menu/update/{menu_item.id}",
            json={"price": 90, "variations": [{"variationId": large_variation.id, "price": 45}]},
            headers=manager_headers,
        )
        assert resp.status_code == 200
        item = resp.json()["menuItem"]
        assert item["price"] == 90
        assert item["variations"][0]["price"] == 45

    def test_list_and_filter(self, client, user_headers, menu_item, second_menu_item):
        resp = client.get("/api/menu/get-all", headers=user_headers)
        data = resp.json()
        assert data["total"] == 2
        assert [m["name"] for m in data["menuItems"]] == ["Garlic Bread", "Tomato Soup"]

        resp = client.get("/api/menu/get-all", params={"search": "soup"}, headers=user_headers)
        assert [m["name"] for m in resp.json()["menuItems"]] == ["Tomato Soup"]

    def test_retire_menu_item(self, client, manager_headers, menu_item, db_session):
        resp = client.delete(f"/api/menu/delete/{menu_item.id}", headers=manager_headers)
        assert resp.status_code == 200
        db_session.expire_all()
        assert db_session.get(MenuItem, menu_item.id).is_active is False
        assert client.get(f"/api/menu/get/{menu_item.id}", headers=manager_headers).status_code == 404


class TestVariationsAndAddons:
    def test_variation_crud(self, client, manager_headers):
        resp = client.post(
            "/api/variation/create-variation",
            json={"name": "Half", "type": "portion", "price": 0},
            headers=manager_headers,
        )
        assert resp.status_code == 201
        variation = resp.json()["variation"]
        assert variation["variationType"] == "portion"

        resp = client.put(
            f"/api/variation/variation/{variation['id']}",
            json={"name": "Half Plate"},
            headers=manager_headers,
        )
        assert resp.json()["variation"]["name"] == "Half Plate"

        resp = client.delete(f"/api/variation/variation/{variation['id']}", headers=manager_headers)
        assert resp.status_code == 200
        resp = client.get("/api/variation/variations", headers=manager_headers)
        assert resp.json()["total"] == 0

    def test_addon_crud(self, client, manager_headers):
        resp = client.post(
            "/api/variation/create-addon",
            json={"name": "Bacon", "vegType": "non-veg", "price": 40},
            headers=manager_headers,
        )
        addon = resp.json()["addon"]
        assert addon["dietary"] == "non-veg"

        resp = client.get(f"/api/variation/addon/{addon['id']}", headers=manager_headers)
        assert resp.json()["addon"]["price"] == 40

        resp = client.delete(f"/api/variation/addon/{addon['id']}", headers=manager_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/variation/addon/{addon['id']}", headers=manager_headers).status_code == 404

    def test_retired_addon_cannot_be_attached(self, client, manager_headers, category):
        addon = client.post(
            "/api/variation/create-addon",
            json={"name": "Mint", "price": 5},
            headers=manager_headers,
        ).json()["addon"]
        client.delete(f"/api/variation/addon/{addon['id']}", headers=manager_headers)

        resp = client.post(
            "/api/menu/add-menu",
            json={"name": "Mojito", "categoryId": category.id, "price": 150, "addonIds": [addon["id"]]},
            headers=manager_headers,
        )
        assert resp.status_code == 404
