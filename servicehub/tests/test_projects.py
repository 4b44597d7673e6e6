import unittest

from servicehub.tests.support import ApiTestCase, auth, tomorrow


class ProjectTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.create_profile("bob", "business", business_name="Bob's Lawns")
        self.create_profile("ann", "client", name="Ann")

    def create_project(self, user_id="bob", **overrides):
        payload = {
            "client_id": "ann",
            "project_type": "landscaping",
            "project_name": "Front yard",
            "project_tasks": ["Clear beds", "Plant"],
            "estimated_length": 3,
            "estimated_start_date_time": tomorrow(),
            "estimated_end_date_time": tomorrow(72),
        }
        payload.update(overrides)
        return self.client.post("/api/projects", json=payload, headers=auth(user_id))

    def test_create_project(self):
        response = self.create_project()
        self.assertEqual(response.status_code, 201, response.text)
        project = response.json()
        self.assertEqual(project["status"], "planned")
        self.assertEqual(project["approval_status"], "pending")
        self.assertEqual(project["business_owner_id"], "bob")
        self.assertEqual(
            project["project_tasks"],
            [
                {"name": "Clear beds", "status": "queued"},
                {"name": "Plant", "status": "queued"},
            ],
        )
        self.assertEqual(project["client"]["name"], "Ann")

    def test_only_business_can_create(self):
        response = self.create_project(user_id="ann")
        self.assertEqual(response.status_code, 403)

    def test_client_must_exist(self):
        response = self.create_project(client_id="nobody")
        self.assertEqual(response.status_code, 400)

    def test_list_mine_by_role(self):
        project = self.create_project().json()
        for user_id in ("bob", "ann"):
            mine = self.client.get("/api/projects/mine", headers=auth(user_id)).json()
            self.assertEqual([p["id"] for p in mine], [project["id"]])
        self.create_profile("eve", "business")
        self.assertEqual(
            self.client.get("/api/projects/mine", headers=auth("eve")).json(), []
        )

    def test_get_project_visibility(self):
        project = self.create_project().json()
        ok = self.client.get(f"/api/projects/{project['id']}", headers=auth("ann"))
        self.assertEqual(ok.status_code, 200)
        denied = self.client.get(f"/api/projects/{project['id']}", headers=auth("eve"))
        self.assertEqual(denied.status_code, 403)
        missing = self.client.get("/api/projects/missing", headers=auth("ann"))
        self.assertEqual(missing.status_code, 404)

    def test_update_project_owner_only(self):
        project = self.create_project().json()
        response = self.client.patch(
            f"/api/projects/{project['id']}",
            json={"status": "in_progress", "actual_start_date_time": tomorrow()},
            headers=auth("bob"),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "in_progress")

        response = self.client.patch(
            f"/api/projects/{project['id']}",
            json={"notes": "mine now"},
            headers=auth("ann"),
        )
        self.assertEqual(response.status_code, 403)

    def test_update_project_cannot_reassign(self):
        project = self.create_project().json()
        response = self.client.patch(
            f"/api/projects/{project['id']}",
            json={"client_id": "someone"},
            headers=auth("bob"),
        )
        self.assertEqual(response.status_code, 422)

    def test_update_task_status(self):
        project = self.create_project().json()
        response = self.client.post(
            f"/api/projects/{project['id']}/tasks",
            json={"task_index": 1, "status": "done"},
            headers=auth("bob"),
        )
        self.assertEqual(response.status_code, 200)
        tasks = response.json()["project_tasks"]
        self.assertEqual(tasks[0]["status"], "queued")
        self.assertEqual(tasks[1]["status"], "done")

        response = self.client.post(
            f"/api/projects/{project['id']}/tasks",
            json={"task_index": 2, "status": "done"},
            headers=auth("bob"),
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid task index")

        response = self.client.post(
            f"/api/projects/{project['id']}/tasks",
            json={"task_index": -1, "status": "in_progress"},
            headers=auth("bob"),
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            self.db.get_project(project["id"]).project_tasks[-1]["status"], "done"
        )

    def test_approve_project(self):
        project = self.create_project().json()
        denied = self.client.post(
            f"/api/projects/{project['id']}/approve", headers=auth("bob")
        )
        self.assertEqual(denied.status_code, 403)

        response = self.client.post(
            f"/api/projects/{project['id']}/approve", headers=auth("ann")
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["approval_status"], "approved")
        self.assertEqual(response.json()["status"], "planned")

        again = self.client.post(
            f"/api/projects/{project['id']}/approve", headers=auth("ann")
        )
        self.assertEqual(again.status_code, 409)

    def test_reject_project(self):
        project = self.create_project().json()
        response = self.client.post(
            f"/api/projects/{project['id']}/reject",
            json={"rejection_reason": "Too expensive"},
            headers=auth("ann"),
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["approval_status"], "rejected")
        self.assertEqual(body["status"], "cancelled")
        self.assertEqual(body["rejection_reason"], "Too expensive")

    def test_list_clients(self):
        self.create_project()
        self.create_project(project_name="Back yard")
        clients = self.client.get("/api/projects/clients", headers=auth("bob")).json()
        self.assertEqual(clients, ["ann"])
        self.assertEqual(
            self.client.get("/api/projects/clients", headers=auth("ann")).json(), []
        )

    def test_clients_with_completed_appointments(self):
        slot = self.client.post(
            "/api/appointments",
            json={"start_date_time": tomorrow(), "end_date_time": tomorrow(1)},
            headers=auth("bob"),
        ).json()
        self.client.post(
            f"/api/appointments/{slot['id']}/book", json={}, headers=auth("ann")
        )
        eligible = self.client.get(
            "/api/projects/eligible-clients", headers=auth("bob")
        ).json()
        self.assertEqual(eligible, [])

        self.client.post(
            f"/api/appointments/{slot['id']}/status",
            json={"status": "completed"},
            headers=auth("bob"),
        )
        eligible = self.client.get(
            "/api/projects/eligible-clients", headers=auth("bob")
        ).json()
        self.assertEqual(eligible, [{"user_id": "ann", "name": "Ann"}])


class TestimonialApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.create_profile("bob", "business", business_name="Bob's Lawns")
        self.create_profile("ann", "client", name="Ann")

    def create_testimonial(self, user_id="ann", **overrides):
        payload = {
            "business_owner_id": "bob",
            "title": "Great work",
            "description": "The yard looks amazing.",
            "rating": 5,
        }
        payload.update(overrides)
        return self.client.post(
            "/api/testimonials", json=payload, headers=auth(user_id)
        )

    def test_create_testimonial(self):
        response = self.create_testimonial()
        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        self.assertFalse(body["is_highlighted"])
        self.assertEqual(body["client_id"], "ann")
        self.assertEqual(body["business"]["business_name"], "Bob's Lawns")

    def test_only_clients_can_create(self):
        response = self.create_testimonial(user_id="bob")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(
            response.json()["detail"], "Only clients can create testimonials"
        )

    def test_rating_bounds_on_create(self):
        self.assertEqual(self.create_testimonial(rating=6).status_code, 422)
        self.assertEqual(self.create_testimonial(rating=0).status_code, 422)

    def test_target_must_be_business(self):
        self.create_profile("cat", "client")
        response = self.create_testimonial(business_owner_id="cat")
        self.assertEqual(response.status_code, 400)

    def test_project_must_match(self):
        project = self.client.post(
            "/api/projects",
            json={
                "client_id": "ann",
                "project_type": "landscaping",
                "project_name": "Front yard",
                "project_tasks": [],
                "estimated_length": 1,
                "estimated_start_date_time": tomorrow(),
                "estimated_end_date_time": tomorrow(24),
            },
            headers=auth("bob"),
        ).json()
        self.assertEqual(
            self.create_testimonial(project_id=project["id"]).status_code, 201
        )
        self.create_profile("cat", "client")
        response = self.create_testimonial(user_id="cat", project_id=project["id"])
        self.assertEqual(response.status_code, 400)

    def test_toggle_highlight(self):
        testimonial = self.create_testimonial().json()
        denied = self.client.post(
            f"/api/testimonials/{testimonial['id']}/highlight", headers=auth("ann")
        )
        self.assertEqual(denied.status_code, 403)

        on = self.client.post(
            f"/api/testimonials/{testimonial['id']}/highlight", headers=auth("bob")
        )
        self.assertTrue(on.json()["is_highlighted"])
        highlighted = self.client.get(
            "/api/testimonials", params={"highlighted_only": True}
        ).json()
        self.assertEqual([t["id"] for t in highlighted], [testimonial["id"]])

        off = self.client.post(
            f"/api/testimonials/{testimonial['id']}/highlight", headers=auth("bob")
        )
        self.assertFalse(off.json()["is_highlighted"])
        self.assertEqual(
            self.client.get(
                "/api/testimonials", params={"highlighted_only": True}
            ).json(),
            [],
        )

    def test_update_clamps_rating(self):
        testimonial = self.create_testimonial(rating=3).json()
        response = self.client.patch(
            f"/api/testimonials/{testimonial['id']}",
            json={"rating": 9, "title": "Even better"},
            headers=auth("ann"),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["rating"], 5)
        self.assertEqual(response.json()["title"], "Even better")

        response = self.client.patch(
            f"/api/testimonials/{testimonial['id']}",
            json={"rating": -2},
            headers=auth("ann"),
        )
        self.assertEqual(response.json()["rating"], 1)

    def test_only_author_can_update(self):
        testimonial = self.create_testimonial().json()
        response = self.client.patch(
            f"/api/testimonials/{testimonial['id']}",
            json={"title": "Edited"},
            headers=auth("bob"),
        )
        self.assertEqual(response.status_code, 403)

    def test_list_by_business(self):
        self.create_testimonial()
        self.create_profile("eve", "business")
        self.create_testimonial(business_owner_id="eve")
        listed = self.client.get(
            "/api/testimonials", params={"business_owner_id": "eve"}
        ).json()
        self.assertEqual([t["business_owner_id"] for t in listed], ["eve"])
        self.assertEqual(len(self.client.get("/api/testimonials").json()), 2)


if __name__ == "__main__":
    unittest.main()
