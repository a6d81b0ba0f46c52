"""
Test suite for the projects module
Tests: health scoring, order budgets, progress roll-up, project tree API
"""
from datetime import date, timedelta
from decimal import Decimal
from django.test import TestCase, SimpleTestCase
from rest_framework import status
from momentum.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import Deliverable, MasterProject, Subtask, Task, Workpackage
from .services import (
    calculate_budgets_for_projects, calculate_project_health, calculate_subtask_progress,
    round_percent, toggle_todo
)


class ProjectHealthTests(SimpleTestCase):
    """Health scoring on plain dicts"""

    def setUp(self):
        self.today = date(2025, 6, 1)
        self.project = {
            'id': 'p1', 'status': 'active', 'progress': 50,
            'start_date': '2025-01-01', 'end_date': '2025-12-31',
        }

    def test_healthy_project(self):
        result = calculate_project_health(self.project, [], [], today=self.today)
        self.assertEqual(result, {'status': 'good', 'issues': [], 'score': 0})

    def test_at_risk_workpackage_adds_one_each(self):
        workpackages = [
            {'id': 'w1', 'project': 'p1', 'status': 'atRisk'},
            {'id': 'w2', 'project': 'p1', 'status': 'active'},
            {'id': 'w3', 'project': 'other', 'status': 'atRisk'},
        ]
        result = calculate_project_health(self.project, [], workpackages, today=self.today)
        self.assertEqual(result['status'], 'warning')
        self.assertEqual(result['score'], 1)
        self.assertEqual(result['issues'], ['1 workpackage flagged at risk'])

    def test_overdue_deliverables_are_capped_at_three(self):
        workpackages = [{'id': 'w1', 'project': 'p1', 'status': 'active'}]
        deliverables = [
            {'id': f'd{i}', 'workpackage': 'w1', 'due_date': '2025-05-01', 'status': 'in-progress'}
            for i in range(4)
        ]
        deliverables.append({'id': 'done', 'workpackage': 'w1', 'due_date': '2025-05-01', 'status': 'done'})
        result = calculate_project_health(self.project, deliverables, workpackages, today=self.today)
        self.assertEqual(result['score'], 3)
        self.assertEqual(result['status'], 'at-risk')
        self.assertIn('4 deliverables overdue', result['issues'])

    def test_deliverables_of_other_projects_are_ignored(self):
        workpackages = [{'id': 'w1', 'project': 'p1', 'status': 'active'}]
        deliverables = [{'id': 'd1', 'workpackage': 'w9', 'due_date': '2025-05-01', 'status': 'in-progress'}]
        result = calculate_project_health(self.project, deliverables, workpackages, today=self.today)
        self.assertEqual(result['status'], 'good')

    def test_progress_trailing_schedule(self):
        self.project['progress'] = 10
        result = calculate_project_health(self.project, [], [], today=self.today)
        self.assertEqual(result['score'], 1)
        self.assertEqual(result['issues'], ['Progress is trailing expected schedule'])

    def test_progress_within_slack_is_fine(self):
        # expected is 41% on 2025-06-01
        self.project['progress'] = 33
        result = calculate_project_health(self.project, [], [], today=self.today)
        self.assertEqual(result['status'], 'good')

    def test_on_hold_project(self):
        self.project['status'] = 'on-hold'
        result = calculate_project_health(self.project, [], [], today=self.today)
        self.assertEqual(result['score'], 2)
        self.assertEqual(result['status'], 'warning')
        self.assertEqual(result['issues'], ['Project is currently on-hold'])

    def test_combined_score_reaches_at_risk(self):
        self.project['status'] = 'cancelled'
        workpackages = [{'id': 'w1', 'project': 'p1', 'status': 'atRisk'}]
        result = calculate_project_health(self.project, [], workpackages, today=self.today)
        self.assertEqual(result['score'], 3)
        self.assertEqual(result['status'], 'at-risk')


class BudgetCalculationTests(SimpleTestCase):
    """Order-based project budgets"""

    def test_spent_committed_and_remaining(self):
        projects = [{'id': 1, 'total_budget': 1000, 'currency': 'GBP'}]
        orders = [
            {'master_project': 1, 'status': 'received', 'price_ex_vat': 200},
            {'master_project': 1, 'status': 'ordered', 'price_ex_vat': 300},
            {'master_project': 1, 'status': 'to-order', 'price_ex_vat': 100},
            {'master_project': 2, 'status': 'received', 'price_ex_vat': 50},
        ]
        budget = calculate_budgets_for_projects(projects, orders)[1]
        self.assertEqual(budget['spent_amount'], Decimal('200'))
        self.assertEqual(budget['committed_amount'], Decimal('300'))
        self.assertEqual(budget['remaining_budget'], Decimal('500'))
        self.assertEqual(budget['utilization_percentage'], 50)
        self.assertEqual(budget['currency'], 'GBP')

    def test_overspent_project_is_capped(self):
        projects = [{'id': 1, 'total_budget': 100}]
        orders = [{'master_project': 1, 'status': 'received', 'price_ex_vat': 250, 'currency': 'USD'}]
        budget = calculate_budgets_for_projects(projects, orders)[1]
        self.assertEqual(budget['remaining_budget'], Decimal('0.00'))
        self.assertEqual(budget['utilization_percentage'], 100)
        self.assertEqual(budget['budget_status'], 'overbudget')
        self.assertEqual(budget['currency'], 'USD')

    def test_zero_budget_has_zero_utilisation(self):
        budget = calculate_budgets_for_projects([{'id': 'x', 'total_budget': 0}], [])['x']
        self.assertEqual(budget['utilization_percentage'], 0)
        self.assertEqual(budget['currency'], 'EUR')

    def test_round_percent_rounds_half_up(self):
        self.assertEqual(round_percent(2.5), 3)
        self.assertEqual(round_percent(Decimal('84.5')), 85)


class ProgressRollupTests(TestCase):
    """Subtask -> task -> workpackage progress"""

    def setUp(self):
        self.project = TestDataFactory.create_project()
        self.workpackage = TestDataFactory.create_workpackage(self.project)
        self.task = TestDataFactory.create_task(self.workpackage)
        self.subtask = TestDataFactory.create_subtask(self.task, todos=[
            {'id': 'a', 'text': 'Thaw cells', 'completed': True, 'completed_at': None},
            {'id': 'b', 'text': 'Passage', 'completed': False, 'completed_at': None},
            {'id': 'c', 'text': 'Count', 'completed': False, 'completed_at': None},
        ])

    def test_subtask_progress_from_todos(self):
        self.assertEqual(calculate_subtask_progress(self.subtask.todos), 33)
        self.assertIsNone(calculate_subtask_progress([]))

    def test_toggle_rolls_progress_up(self):
        toggle_todo(self.subtask, 'b')
        self.subtask.refresh_from_db()
        self.task.refresh_from_db()
        self.workpackage.refresh_from_db()
        self.assertEqual(self.subtask.progress, 67)
        self.assertEqual(self.task.progress, 67)
        self.assertEqual(self.workpackage.progress, 67)
        todo = next(t for t in self.subtask.todos if t['id'] == 'b')
        self.assertTrue(todo['completed'])
        self.assertIsNotNone(todo['completed_at'])

    def test_toggle_back_clears_completed_at(self):
        toggle_todo(self.subtask, 'a')
        self.subtask.refresh_from_db()
        todo = next(t for t in self.subtask.todos if t['id'] == 'a')
        self.assertFalse(todo['completed'])
        self.assertIsNone(todo['completed_at'])
        self.assertEqual(self.subtask.progress, 0)

    def test_task_progress_is_mean_of_subtasks(self):
        TestDataFactory.create_subtask(self.task, todos=[{'id': 'x', 'text': 'Done', 'completed': True}], progress=100)
        toggle_todo(self.subtask, 'b')
        self.task.refresh_from_db()
        # (67 + 100) / 2
        self.assertEqual(self.task.progress, 84)

    def test_unknown_todo_raises(self):
        with self.assertRaises(KeyError):
            toggle_todo(self.subtask, 'missing')


class ProjectAPITests(TestCase):
    """Project tree endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.lab = TestDataFactory.create_lab()
        self.project = TestDataFactory.create_project(lab=self.lab, name='Organoid Atlas')

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/projects/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_projects(self):
        response = self.client.get('/api/v1/projects/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Organoid Atlas')

    def test_filter_projects_by_status_list(self):
        TestDataFactory.create_project(lab=self.lab, status='completed')
        TestDataFactory.create_project(lab=self.lab, status='on-hold')
        response = self.client.get('/api/v1/projects/?status=active,completed')
        self.assertEqual(response.data['count'], 2)

    def test_search_projects(self):
        TestDataFactory.create_project(lab=self.lab, name='Something else')
        response = self.client.get('/api/v1/projects/?search=organoid')
        self.assertEqual(response.data['count'], 1)

    def test_create_project(self):
        data = {
            'name': 'CRISPR screen',
            'lab': self.lab.id,
            'start_date': '2025-01-01',
            'end_date': '2026-01-01',
            'total_budget': '5000.00',
            'tags': ['screening'],
        }
        response = self.client.post('/api/v1/projects/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        project = MasterProject.objects.get(name='CRISPR screen')
        self.assertEqual(project.created_by, self.user)
        self.assertIn(response.data['health'], ('good', 'warning', 'at-risk'))

    def test_create_project_rejects_end_before_start(self):
        data = {'name': 'Backwards', 'start_date': '2025-06-01', 'end_date': '2025-01-01'}
        response = self.client.post('/api/v1/projects/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('end_date', response.data)

    def test_create_project_rejects_bad_progress_and_name(self):
        data = {'name': '', 'start_date': '2025-01-01', 'end_date': '2025-06-01', 'progress': 150}
        response = self.client.post('/api/v1/projects/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)

        data['name'] = 'Fine'
        response = self.client.post('/api/v1/projects/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('progress', response.data)

    def test_update_project_status_refreshes_health(self):
        response = self.client.patch(f'/api/v1/projects/{self.project.id}/', {'status': 'on-hold'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.project.refresh_from_db()
        self.assertEqual(self.project.health, 'warning')

    def test_at_risk_workpackages_mark_project_at_risk(self):
        for _ in range(3):
            TestDataFactory.create_workpackage(self.project)
        for workpackage in self.project.workpackages.all():
            response = self.client.patch(f'/api/v1/workpackages/{workpackage.id}/', {'status': 'atRisk'}, format='json')
            self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.project.refresh_from_db()
        self.assertEqual(self.project.health, 'at-risk')

    def test_delete_project_cascades(self):
        workpackage = TestDataFactory.create_workpackage(self.project)
        TestDataFactory.create_task(workpackage)
        response = self.client.delete(f'/api/v1/projects/{self.project.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Workpackage.objects.exists())
        self.assertFalse(Task.objects.exists())

    def test_project_summary(self):
        account = TestDataFactory.create_account(lab=self.lab)
        TestDataFactory.create_order(account, price_ex_vat=Decimal('1000.00'), status='received',
                                     master_project=self.project)
        TestDataFactory.create_order(account, price_ex_vat=Decimal('500.00'), status='ordered',
                                     master_project=self.project)
        workpackage = TestDataFactory.create_workpackage(self.project)
        TestDataFactory.create_deliverable(workpackage, due_date=date.today() - timedelta(days=3))

        response = self.client.get(f'/api/v1/projects/{self.project.id}/summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['budget']['spent_amount'], Decimal('1000.00'))
        self.assertEqual(response.data['budget']['committed_amount'], Decimal('500.00'))
        self.assertEqual(response.data['budget']['utilization_percentage'], 15)
        self.assertEqual(response.data['stats']['deliverables_overdue'], 1)
        self.assertEqual(response.data['stats']['orders_by_status'], {'received': 1, 'ordered': 1})
        self.assertEqual(response.data['health']['issues'], ['1 deliverable overdue'])

    def test_project_export_csv(self):
        response = self.client.get('/api/v1/projects/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response['Content-Type'].startswith('text/csv'))
        content = response.content.decode()
        self.assertTrue(content.startswith('Project Name,Start Date,End Date'))
        self.assertIn('Organoid Atlas', content)

    def test_project_files(self):
        data = {'name': 'protocol.pdf', 'url': 'https://files.example.org/protocol.pdf', 'mime_type': 'application/pdf'}
        response = self.client.post(f'/api/v1/projects/{self.project.id}/files/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        file_id = response.data['id']
        response = self.client.get(f'/api/v1/projects/{self.project.id}/files/')
        self.assertEqual(len(response.data), 1)
        response = self.client.delete(f'/api/v1/projects/{self.project.id}/files/{file_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)


class DeliverableAPITests(TestCase):
    """Deliverable endpoints: order links and reviews"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.lab = TestDataFactory.create_lab()
        self.project = TestDataFactory.create_project(lab=self.lab)
        self.workpackage = TestDataFactory.create_workpackage(self.project)
        self.deliverable = TestDataFactory.create_deliverable(self.workpackage, due_date=date.today() + timedelta(days=30))
        self.account = TestDataFactory.create_account(lab=self.lab)

    def test_create_deliverable_validates_dates(self):
        data = {
            'workpackage': self.workpackage.id,
            'name': 'Paper draft',
            'start_date': '2025-05-01',
            'due_date': '2025-04-01',
        }
        response = self.client.post('/api/v1/deliverables/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('due_date', response.data)

    def test_create_deliverable_validates_document_links(self):
        data = {
            'workpackage': self.workpackage.id,
            'name': 'Dataset',
            'document_links': [{'title': 'Data', 'target_url': 'not a url', 'provider': 'url'}],
        }
        response = self.client.post('/api/v1/deliverables/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_link_and_unlink_order(self):
        order = TestDataFactory.create_order(self.account)
        response = self.client.post(f'/api/v1/deliverables/{self.deliverable.id}/orders/', {'order': order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['linked_orders'], [order.id])
        order.refresh_from_db()
        self.assertEqual(order.deliverable_id, self.deliverable.id)
        self.assertEqual(order.workpackage_id, self.workpackage.id)

        response = self.client.delete(f'/api/v1/deliverables/{self.deliverable.id}/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['linked_orders'], [])

    def test_unlink_order_not_linked(self):
        order = TestDataFactory.create_order(self.account)
        response = self.client.delete(f'/api/v1/deliverables/{self.deliverable.id}/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_add_review(self):
        reviewer = TestDataFactory.create_profile(lab=self.lab, first_name='Ada', last_name='Byron')
        data = {'reviewer': reviewer.id, 'approved': True, 'summary': 'Looks good'}
        response = self.client.post(f'/api/v1/deliverables/{self.deliverable.id}/reviews/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.deliverable.refresh_from_db()
        self.assertEqual(len(self.deliverable.review_history), 1)
        review = self.deliverable.review_history[0]
        self.assertEqual(review['reviewer_name'], 'Ada Byron')
        self.assertTrue(review['approved'])

    def test_overdue_deliverable_updates_health(self):
        response = self.client.patch(
            f'/api/v1/deliverables/{self.deliverable.id}/',
            {'due_date': (date.today() - timedelta(days=1)).isoformat()},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.project.refresh_from_db()
        self.assertEqual(self.project.health, 'warning')

        self.client.patch(f'/api/v1/deliverables/{self.deliverable.id}/', {'status': 'done'}, format='json')
        self.project.refresh_from_db()
        self.assertEqual(self.project.health, 'good')

    def test_filter_deliverables_by_project(self):
        other = TestDataFactory.create_workpackage(TestDataFactory.create_project(lab=self.lab))
        TestDataFactory.create_deliverable(other)
        response = self.client.get(f'/api/v1/deliverables/?project={self.project.id}')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(Deliverable.objects.count(), 2)


class TaskAPITests(TestCase):
    """Task and subtask endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.project = TestDataFactory.create_project()
        self.workpackage = TestDataFactory.create_workpackage(self.project)
        self.task = TestDataFactory.create_task(self.workpackage, name='Imaging')

    def test_task_cannot_depend_on_itself(self):
        response = self.client.patch(f'/api/v1/tasks/{self.task.id}/', {'dependencies': [self.task.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('dependencies', response.data)

    def test_task_deliverable_must_share_workpackage(self):
        other_wp = TestDataFactory.create_workpackage(self.project)
        deliverable = TestDataFactory.create_deliverable(other_wp)
        response = self.client.patch(f'/api/v1/tasks/{self.task.id}/', {'deliverable': deliverable.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_subtask_normalises_todos(self):
        data = {'task': self.task.id, 'name': 'Stain', 'todos': [{'text': 'Fix', 'completed': True}, {'text': 'Mount'}]}
        response = self.client.post('/api/v1/subtasks/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['progress'], 50)
        self.assertTrue(all(todo['id'] for todo in response.data['todos']))
        self.task.refresh_from_db()
        self.assertEqual(self.task.progress, 50)

    def test_subtask_rejects_todo_without_text(self):
        data = {'task': self.task.id, 'name': 'Stain', 'todos': [{'completed': False}]}
        response = self.client.post('/api/v1/subtasks/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_toggle_todo_endpoint(self):
        subtask = TestDataFactory.create_subtask(self.task, todos=[{'id': 't1', 'text': 'One', 'completed': False}])
        response = self.client.post(f'/api/v1/subtasks/{subtask.id}/todos/t1/toggle/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['progress'], 100)

        response = self.client.post(f'/api/v1/subtasks/{subtask.id}/todos/nope/toggle/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_subtask_rolls_up(self):
        self.task.progress = 40
        self.task.save()
        done = TestDataFactory.create_subtask(self.task, progress=100)
        TestDataFactory.create_subtask(self.task, progress=0)
        response = self.client.delete(f'/api/v1/subtasks/{done.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.task.refresh_from_db()
        self.assertEqual(self.task.progress, 0)
        self.assertEqual(Subtask.objects.count(), 1)

    def test_task_export(self):
        response = self.client.get(f'/api/v1/tasks/export/?workpackage={self.workpackage.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('Imaging', response.content.decode())
