#!/usr/bin/env python3
"""Unified CLI for the Client Project Portal.

Usage:
    python cli.py init-db
    python cli.py create-user --email admin@example.com --password ... --full-name "Admin" --role admin
    python cli.py sync-profiles
    python cli.py serve --port 8000
"""
import argparse
import logging
import os
import sys


def cmd_init_db(args):
    from modules.tracking.database import init_db

    init_db()
    print('✅ Database tables created')


def cmd_create_user(args):
    from common.auth import IdentityError, get_identity_provider
    from modules.tracking import DataClient, create_profile_for_user
    from modules.tracking.database import get_session

    missing = [f for f in ('email', 'password', 'full_name') if not getattr(args, f)]
    if missing:
        print(f"❌ Missing: {', '.join('--' + m.replace('_', '-') for m in missing)}")
        return 1

    with get_session() as session:
        provider = get_identity_provider(session)
        try:
            identity = provider.create_user(
                email=args.email,
                password=args.password,
                email_confirm=True,
                user_metadata={'full_name': args.full_name, 'role': args.role, 'company': args.company},
            )
        except IdentityError as e:
            print(f'❌ Failed to create user: {e}')
            return 1

        result = create_profile_for_user(
            DataClient(session),
            identity.id,
            args.email,
            args.full_name,
            role=args.role,
            company=args.company,
        )
        if not result['success']:
            provider.delete_user(identity.id)
            print(f"❌ Failed to create profile: {result['error']}")
            return 1

    print(f'✅ {args.role} {args.email} created ({identity.id})')
    return 0


def cmd_sync_profiles(args):
    from common.auth import get_identity_provider
    from modules.tracking import DataClient, sync_missing_profiles
    from modules.tracking.database import get_session

    with get_session() as session:
        result = sync_missing_profiles(get_identity_provider(session), DataClient(session))

    print(f"🔄 Profiles created: {result['synced_count']}")
    for item in result['missing_profiles']:
        print(f"   ⚠️  Not synced: {item['email']} ({item['user_id']})")
    if result['error']:
        print(f"❌ {result['error']}")
        return 1
    return 0


def cmd_serve(args):
    import uvicorn

    app = 'services.provisioning.app:app' if args.provisioning else 'portal.main:app'
    uvicorn.run(app, host=args.host, port=args.port, reload=args.reload)


COMMANDS = {
    'init-db': cmd_init_db,
    'create-user': cmd_create_user,
    'sync-profiles': cmd_sync_profiles,
    'serve': cmd_serve,
}


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Client Project Portal',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  init-db        Create all tables
  create-user    Create identity + profile (bootstrap the first admin)
  sync-profiles  Create profiles for identities that have none
  serve          Run the portal (or --provisioning service) with uvicorn

Examples:
  python cli.py create-user --email ana@acme.com --password s3cret --full-name "Ana" --role client --company Acme
  python cli.py serve --port 8000 --reload
"""
    )
    parser.add_argument('command', choices=list(COMMANDS), help='Command to run')
    parser.add_argument('--email')
    parser.add_argument('--password')
    parser.add_argument('--full-name', dest='full_name')
    parser.add_argument('--role', default='client', choices=['client', 'team_member', 'admin'])
    parser.add_argument('--company')
    parser.add_argument('--host', default='127.0.0.1')
    parser.add_argument('--port', type=int, default=8000)
    parser.add_argument('--reload', action='store_true')
    parser.add_argument('--provisioning', action='store_true', help='Serve the provisioning service')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=os.environ.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    return COMMANDS[args.command](args) or 0


if __name__ == '__main__':
    sys.exit(main())
