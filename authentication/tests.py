"""
Tests for accounts, tenancy and error messages
Tests: Login, Subscription guard, Branch limits, Staff accounts, Admin context, Error mapping
"""
from datetime import date, timedelta

from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework import status

from authentication.messages import bilingual, describe_error, map_cashier_error, map_error
from authentication.models import AuditLog, Branch, CustomUser, RestaurantSubscription, add_months
from authentication.test_utils import AuthenticatedAPIClient, TestDataFactory


class LoginTests(TestCase):
    """Test JWT login"""

    def setUp(self):
        self.restaurant = TestDataFactory.create_restaurant()
        self.user = TestDataFactory.create_user(email='cashier@example.com')
        TestDataFactory.create_role('cashier', self.restaurant, user=self.user)
        self.client = AuthenticatedAPIClient()

    def test_login_returns_role_and_tokens(self):
        """Test login with valid credentials"""
        response = self.client.post('/api/auth/login/', {
            'email': 'cashier@example.com', 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['role'], 'cashier')
        self.assertEqual(response.data['branch_id'], str(self.restaurant.default_branch.id))
        self.assertTrue(response.data['subscription_active'])

    def test_login_wrong_password(self):
        response = self.client.post('/api/auth/login/', {
            'email': 'cashier@example.com', 'password': 'wrong'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_rejected_for_inactive_restaurant(self):
        self.restaurant.is_active = False
        self.restaurant.save()
        response = self.client.post('/api/auth/login/', {
            'email': 'cashier@example.com', 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'restaurant_inactive')

    def test_login_rejected_without_role(self):
        TestDataFactory.create_user(email='nobody@example.com')
        response = self.client.post('/api/auth/login/', {
            'email': 'nobody@example.com', 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SubscriptionTests(TestCase):
    """Test subscription periods and the expiry guard"""

    def test_end_date_adds_period_and_bonus(self):
        end = RestaurantSubscription.compute_end_date(date(2024, 1, 15), 'QUARTERLY', bonus_months=2)
        self.assertEqual(end, date(2024, 6, 15))

    def test_end_date_clamps_month_end(self):
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))

    def test_bonus_is_clamped(self):
        self.assertEqual(RestaurantSubscription.clamp_bonus(10), 6)
        self.assertEqual(RestaurantSubscription.clamp_bonus(-3), 0)
        self.assertEqual(RestaurantSubscription.clamp_bonus('x'), 0)

    def test_expired_subscription_is_persisted(self):
        restaurant = TestDataFactory.create_restaurant()
        subscription = restaurant.subscription
        subscription.end_date = timezone.localdate() - timedelta(days=1)
        subscription.save()
        self.assertEqual(subscription.refresh_status(), 'EXPIRED')
        subscription.refresh_from_db()
        self.assertEqual(subscription.status, 'EXPIRED')
        self.assertFalse(restaurant.has_active_subscription)

    def test_expired_subscription_blocks_shift_open(self):
        restaurant = TestDataFactory.create_restaurant()
        RestaurantSubscription.objects.filter(restaurant=restaurant).update(
            end_date=timezone.localdate() - timedelta(days=1)
        )
        cashier = TestDataFactory.create_role('cashier', restaurant)
        client = AuthenticatedAPIClient().authenticate_user(cashier)

        response = client.post('/api/shifts/open/', {'opening_cash': '10.000'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error']['code'], 'SUBSCRIPTION_EXPIRED')
        self.assertIn('message_ar', response.data)


class BranchTests(TestCase):
    """Test owner branch management"""

    def setUp(self):
        self.restaurant = TestDataFactory.create_restaurant()
        self.owner = TestDataFactory.create_role('owner', self.restaurant)
        self.client = AuthenticatedAPIClient().authenticate_user(self.owner)

    def test_create_branch(self):
        response = self.client.post('/api/branches/', {'name': 'Abdoun', 'code': 'abd'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'ABD')
        self.assertTrue(AuditLog.objects.filter(action='BRANCH_CREATED').exists())

    def test_branch_limit_reached(self):
        self.restaurant.max_branches_allowed = 1
        self.restaurant.save()
        response = self.client.post('/api/branches/', {'name': 'Second', 'code': 'SEC'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'branch_limit_reached')
        self.assertEqual(Branch.objects.filter(restaurant=self.restaurant).count(), 1)

    def test_cannot_deactivate_branch_with_open_shift(self):
        branch = self.restaurant.default_branch
        cashier = TestDataFactory.create_role('cashier', self.restaurant, branch=branch)
        role = cashier.user_role
        role.is_active = False
        role.save()
        TestDataFactory.create_shift(cashier, self.restaurant, branch)

        response = self.client.delete(f'/api/branches/{branch.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'open_shifts')

    def test_branches_of_other_restaurant_are_hidden(self):
        other = TestDataFactory.create_restaurant()
        response = self.client.get(f'/api/branches/{other.default_branch.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class StaffTests(TestCase):
    """Test owner staff management"""

    def setUp(self):
        self.restaurant = TestDataFactory.create_restaurant()
        self.owner = TestDataFactory.create_role('owner', self.restaurant)
        self.cashier = TestDataFactory.create_role('cashier', self.restaurant)
        self.client = AuthenticatedAPIClient().authenticate_user(self.owner)

    def staff_url(self, user, suffix=''):
        return f'/api/staff/{user.user_role.id}/{suffix}'

    def test_duplicate_email_conflicts(self):
        response = self.client.post('/api/staff/', {
            'email': self.cashier.email.upper(),
            'password': 'Zaatar-2024-Pos',
            'first_name': 'Rami',
            'role': 'cashier',
            'branch': str(self.restaurant.default_branch.id),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'user_exists')

    def test_update_staff_email(self):
        response = self.client.post(self.staff_url(self.cashier, 'email/'), {'new_email': 'Rami@Example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.cashier.refresh_from_db()
        self.assertEqual(self.cashier.email, 'rami@example.com')
        log = AuditLog.objects.get(action='STAFF_EMAIL_UPDATED')
        self.assertEqual(log.details['new_email'], 'rami@example.com')

    def test_update_staff_email_taken(self):
        response = self.client.post(self.staff_url(self.cashier, 'email/'), {'new_email': self.owner.email}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'email_taken')

    def test_staff_of_other_restaurant_is_hidden(self):
        other = TestDataFactory.create_role('kitchen', TestDataFactory.create_restaurant())
        response = self.client.post(self.staff_url(other, 'email/'), {'new_email': 'x@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.delete(self.staff_url(other))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_staff_user(self):
        user_id = self.cashier.id
        response = self.client.delete(self.staff_url(self.cashier))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(CustomUser.objects.filter(id=user_id).exists())
        self.assertTrue(AuditLog.objects.filter(action='STAFF_DELETED', entity_id=str(user_id)).exists())

    def test_staff_with_shifts_is_kept(self):
        TestDataFactory.create_shift(self.cashier, self.restaurant)
        response = self.client.delete(self.staff_url(self.cashier))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'staff_has_shifts')
        self.assertTrue(CustomUser.objects.filter(id=self.cashier.id).exists())

    def test_cashier_cannot_manage_staff(self):
        client = AuthenticatedAPIClient().authenticate_user(self.cashier)
        response = client.delete(self.staff_url(self.cashier))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AdminContextTests(TestCase):
    """Test the restaurant header for system admins"""

    def setUp(self):
        self.restaurant = TestDataFactory.create_restaurant()
        self.admin = TestDataFactory.create_role('system_admin')
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin)

    def test_admin_needs_restaurant_header(self):
        response = self.client.get('/api/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'missing_fields')

    def test_admin_with_restaurant_header(self):
        response = self.client.get('/api/audit-logs/', HTTP_X_RESTAURANT_ID=str(self.restaurant.id))
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class ErrorMappingTests(SimpleTestCase):
    """Test raw error to message code mapping"""

    def test_branch_guards_come_first(self):
        self.assertEqual(map_error('ACTIVE_CASHIERS'), 'active_cashiers')
        self.assertEqual(map_error('permission denied: OPEN_SHIFTS'), 'open_shifts')

    def test_back_office_mapping(self):
        self.assertEqual(map_error('new row violates row-level security policy'), 'permission_denied')
        self.assertEqual(map_error({'message': 'x', 'code': '42501'}), 'permission_denied')
        self.assertEqual(map_error('duplicate key value violates unique constraint'), 'duplicate')
        self.assertEqual(map_error('Record does not exist'), 'not_found')
        self.assertEqual(map_error('Failed to fetch'), 'network')
        self.assertEqual(map_error('restaurant mismatch'), 'restaurant_mismatch')
        self.assertEqual(map_error(None), 'unexpected')

    def test_cashier_mapping(self):
        self.assertEqual(map_cashier_error('Order is not open. Status: held'), ('order_held', None))
        self.assertEqual(map_cashier_error('Order already paid'), ('payment_duplicate', None))
        self.assertEqual(map_cashier_error('Payment is less than total'), ('underpayment', None))
        self.assertEqual(
            map_cashier_error('Insufficient stock for ingredient: Tomato'),
            ('insufficient_stock', 'Tomato'),
        )
        self.assertEqual(map_cashier_error('Internal Server Error 500'), ('technical', None))

    def test_describe_error_is_bilingual(self):
        payload = describe_error('duplicate key', audience='owner')
        self.assertEqual(payload['code'], 'duplicate')
        self.assertEqual(payload['message_en'], bilingual('duplicate')['message_en'])
        self.assertTrue(payload['message_ar'])
