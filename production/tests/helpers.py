from django.contrib.auth import get_user_model

User = get_user_model()


def create_user(role, email=None, password='testpass123'):
    email = email or f'{role}@example.com'
    return User.objects.create_user(
        username=email.split('@')[0],
        email=email,
        password=password,
        first_name=role.capitalize(),
        last_name='User',
        role=role,
    )
