"""
Test suite for calendar events
Tests: validation of dates, recurrence, attendees and reminders,
filters, the upcoming window and CSV export
"""
from datetime import timedelta
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from momentum.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import CalendarEvent


class CalendarEventAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.lab = TestDataFactory.create_lab()
        self.person = TestDataFactory.create_profile(lab=self.lab, first_name='Ada', last_name='Lovelace')
        self.start = timezone.now() + timedelta(days=2)

    def _payload(self, **overrides):
        data = {
            'title': 'Group meeting',
            'start': self.start.isoformat(),
            'end': (self.start + timedelta(hours=1)).isoformat(),
            'lab': self.lab.id,
            'owner': self.person.id,
        }
        data.update(overrides)
        return data

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/events/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_event(self):
        payload = self._payload(
            recurrence={'frequency': 'weekly', 'interval': 1},
            attendees=[{'person_id': self.person.id}],
            reminders=[{'method': 'email', 'minutes_before': 30}],
            tags=[' lab ', ''],
        )
        response = self.client.post('/api/v1/events/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['owner_name'], 'Ada Lovelace')
        self.assertEqual(response.data['attendees'], [{'person_id': self.person.id, 'response': 'none'}])
        self.assertEqual(response.data['tags'], ['lab'])
        event = CalendarEvent.objects.get()
        self.assertEqual(event.created_by, self.user)

    def test_end_before_start_rejected(self):
        payload = self._payload(end=(self.start - timedelta(hours=1)).isoformat())
        response = self.client.post('/api/v1/events/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['end'], ['End date must be after start date'])

    def test_enum_validation(self):
        response = self.client.post('/api/v1/events/', self._payload(recurrence={'frequency': 'hourly'}),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('recurrence', response.data)

        response = self.client.post('/api/v1/events/',
                                    self._payload(attendees=[{'person_id': 1, 'response': 'maybe'}]),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('attendees', response.data)

        response = self.client.post('/api/v1/events/',
                                    self._payload(reminders=[{'method': 'pigeon', 'minutes_before': 10}]),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('reminders', response.data)

    def test_workpackage_must_match_project(self):
        project = TestDataFactory.create_project(lab=self.lab)
        other_wp = TestDataFactory.create_workpackage(TestDataFactory.create_project(lab=self.lab))
        response = self.client.post('/api/v1/events/', self._payload(related_project=project.id,
                                                                     related_workpackage=other_wp.id),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('related_workpackage', response.data)

    def test_patch_keeps_date_rule(self):
        event = TestDataFactory.create_event(lab=self.lab, start=self.start)
        response = self.client.patch(f'/api/v1/events/{event.id}/',
                                     {'end': (self.start - timedelta(days=1)).isoformat()}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(f'/api/v1/events/{event.id}/', {'location': 'Room 2.14'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['location'], 'Room 2.14')

    def test_filters(self):
        TestDataFactory.create_event(lab=self.lab, title='Journal club', start=self.start, owner=self.person)
        TestDataFactory.create_event(lab=self.lab, title='Grant deadline', event_type='deadline',
                                     start=self.start + timedelta(days=20))

        response = self.client.get('/api/v1/events/?type=deadline')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['title'], 'Grant deadline')

        response = self.client.get(f'/api/v1/events/?owner={self.person.id}')
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/events/?search=journal')
        self.assertEqual(response.data['count'], 1)

        start_to = (self.start + timedelta(days=1)).strftime('%Y-%m-%dT%H:%M:%SZ')
        response = self.client.get(f'/api/v1/events/?start_to={start_to}')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['title'], 'Journal club')

    def test_upcoming(self):
        now = timezone.now()
        TestDataFactory.create_event(lab=self.lab, title='Past', start=now - timedelta(days=3))
        TestDataFactory.create_event(lab=self.lab, title='Ongoing', start=now - timedelta(minutes=30))
        TestDataFactory.create_event(lab=self.lab, title='Soon', start=now + timedelta(days=2))
        TestDataFactory.create_event(lab=self.lab, title='Later', start=now + timedelta(days=20))

        response = self.client.get('/api/v1/events/upcoming/')
        self.assertEqual([e['title'] for e in response.data['results']], ['Ongoing', 'Soon'])

        response = self.client.get('/api/v1/events/upcoming/?days=30')
        self.assertEqual(response.data['count'], 3)

        response = self.client.get('/api/v1/events/upcoming/?days=soon')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete(self):
        event = TestDataFactory.create_event(lab=self.lab)
        response = self.client.delete(f'/api/v1/events/{event.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(CalendarEvent.objects.exists())

    def test_export(self):
        TestDataFactory.create_event(lab=self.lab, title='Safety training, level 2', event_type='training',
                                     start=self.start)
        response = self.client.get('/api/v1/events/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        lines = response.content.decode().split('\n')
        self.assertEqual(lines[0], 'Title,Start,End,Type,Location,Visibility,Description')
        self.assertTrue(lines[1].startswith('"Safety training, level 2",'))
        self.assertIn(',training,', lines[1])
