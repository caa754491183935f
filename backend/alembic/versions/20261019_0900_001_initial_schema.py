"""Initial schema - usuários, catálogo, agendamentos, vendas e suporte

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # === Usuários ===
    op.create_table(
        'users',
        sa.Column('uid', sa.String(128), nullable=False),
        sa.Column('nome', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('foto_perfil', sa.String(500), nullable=True),
        sa.Column('plan', sa.String(64), nullable=False, server_default='none'),
        sa.Column('active', sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column('role', sa.String(20), nullable=False, server_default='user'),
        sa.Column('access_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('whatsapp_message_template', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('uid')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # === Planos ===
    op.create_table(
        'plans',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('price', sa.Float(), nullable=False, server_default='0.0'),
        sa.Column('checkout_url', sa.String(500), nullable=False, server_default='#'),
        sa.Column('features', sa.JSON(), nullable=False),
        sa.Column('max_products', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('max_schedulings_per_month', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('max_pre_schedulings_per_month', sa.Integer(), nullable=False, server_default='20'),
        sa.Column('max_whatsapp_confirmations_per_month', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('can_export_excel', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('can_view_analytics', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('can_use_cep_checker', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('popular', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('active', sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'approved_emails',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('plan', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_approved_emails_id', 'approved_emails', ['id'], unique=False)
    op.create_index('ix_approved_emails_email', 'approved_emails', ['email'], unique=False)

    op.create_table(
        'announcements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('target_plan', sa.String(64), nullable=False, server_default='all'),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_announcements_id', 'announcements', ['id'], unique=False)

    op.create_table(
        'activity_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('actor_uid', sa.String(128), nullable=True),
        sa.Column('actor_nome', sa.String(255), nullable=True),
        sa.Column('actor_email', sa.String(255), nullable=True),
        sa.Column('actor_role', sa.String(20), nullable=False, server_default='user'),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('target_type', sa.String(50), nullable=True),
        sa.Column('target_id', sa.String(100), nullable=True),
        sa.Column('target_name', sa.String(255), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_activity_logs_id', 'activity_logs', ['id'], unique=False)
    op.create_index('ix_activity_logs_actor_uid', 'activity_logs', ['actor_uid'], unique=False)
    op.create_index('ix_activity_logs_action', 'activity_logs', ['action'], unique=False)
    op.create_index('ix_activity_logs_created_at', 'activity_logs', ['created_at'], unique=False)
    op.create_index('ix_activity_target', 'activity_logs', ['target_type', 'target_id'], unique=False)

    # === Catálogo ===
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('nome', sa.String(255), nullable=False),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('covered_cities', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.uid'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_products_id', 'products', ['id'], unique=False)
    op.create_index('ix_products_user_id', 'products', ['user_id'], unique=False)

    op.create_table(
        'precos_comissoes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('posicao', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('plataforma', sa.String(20), nullable=False),
        sa.Column('quantidade', sa.Integer(), nullable=False),
        sa.Column('preco', sa.Float(), nullable=False),
        sa.Column('comissao', sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_precos_comissoes_id', 'precos_comissoes', ['id'], unique=False)
    op.create_index('ix_precos_comissoes_product_id', 'precos_comissoes', ['product_id'], unique=False)

    # === Agendamentos ===
    op.create_table(
        'agendamentos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('cliente_nome', sa.String(255), nullable=False),
        sa.Column('cliente_telefone', sa.String(30), nullable=False),
        sa.Column('cep', sa.String(9), nullable=False),
        sa.Column('endereco', sa.String(255), nullable=False),
        sa.Column('numero', sa.String(20), nullable=False),
        sa.Column('complemento', sa.String(255), nullable=True),
        sa.Column('bairro', sa.String(120), nullable=False),
        sa.Column('cidade', sa.String(120), nullable=False),
        sa.Column('produto_id', sa.Integer(), nullable=False),
        sa.Column('produto_nome', sa.String(255), nullable=True),
        sa.Column('quantidade', sa.Integer(), nullable=False),
        sa.Column('plataforma', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='Agendar'),
        sa.Column('data_agendamento', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.uid'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_agendamentos_id', 'agendamentos', ['id'], unique=False)
    op.create_index('ix_agendamentos_user_id', 'agendamentos', ['user_id'], unique=False)
    op.create_index('ix_agendamentos_produto_id', 'agendamentos', ['produto_id'], unique=False)
    op.create_index('ix_agendamentos_created_at', 'agendamentos', ['created_at'], unique=False)
    op.create_index('ix_agendamentos_user_status', 'agendamentos', ['user_id', 'status'], unique=False)

    op.create_table(
        'pre_agendamentos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('cliente_nome', sa.String(255), nullable=False),
        sa.Column('cliente_whatsapp', sa.String(30), nullable=False),
        sa.Column('cep', sa.String(9), nullable=False),
        sa.Column('endereco', sa.String(255), nullable=False),
        sa.Column('numero', sa.String(20), nullable=False),
        sa.Column('complemento', sa.String(255), nullable=True),
        sa.Column('bairro', sa.String(120), nullable=False),
        sa.Column('cidade', sa.String(120), nullable=False),
        sa.Column('produto_id', sa.Integer(), nullable=False),
        sa.Column('produto_nome', sa.String(255), nullable=True),
        sa.Column('quantidade', sa.Integer(), nullable=False),
        sa.Column('plataforma', sa.String(20), nullable=False),
        sa.Column('data_prevista', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='Pendente'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.uid'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_pre_agendamentos_id', 'pre_agendamentos', ['id'], unique=False)
    op.create_index('ix_pre_agendamentos_user_id', 'pre_agendamentos', ['user_id'], unique=False)
    op.create_index('ix_pre_agendamentos_created_at', 'pre_agendamentos', ['created_at'], unique=False)

    # === Vendas ===
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('cliente_nome', sa.String(255), nullable=False),
        sa.Column('cliente_telefone', sa.String(30), nullable=False),
        sa.Column('endereco', sa.String(500), nullable=True),
        sa.Column('produto_id', sa.Integer(), nullable=False),
        sa.Column('produto_nome', sa.String(255), nullable=True),
        sa.Column('plataforma', sa.String(20), nullable=False),
        sa.Column('quantidade', sa.Integer(), nullable=False),
        sa.Column('valor_total', sa.Float(), nullable=False),
        sa.Column('comissao', sa.Float(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='Pago'),
        sa.Column('agendamento_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.uid'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('agendamento_id')
    )
    op.create_index('ix_sales_id', 'sales', ['id'], unique=False)
    op.create_index('ix_sales_user_id', 'sales', ['user_id'], unique=False)
    op.create_index('ix_sales_created_at', 'sales', ['created_at'], unique=False)
    op.create_index('ix_sales_user_created', 'sales', ['user_id', 'created_at'], unique=False)

    op.create_table(
        'whatsapp_confirmations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('agendamento_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.uid'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_whatsapp_confirmations_id', 'whatsapp_confirmations', ['id'], unique=False)
    op.create_index('ix_whatsapp_confirmations_user_id', 'whatsapp_confirmations', ['user_id'], unique=False)
    op.create_index('ix_whatsapp_confirmations_created_at', 'whatsapp_confirmations', ['created_at'], unique=False)

    # === Suporte ===
    op.create_table(
        'tickets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('user_name', sa.String(255), nullable=False),
        sa.Column('user_email', sa.String(255), nullable=False),
        sa.Column('subject', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='open'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.uid'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_tickets_id', 'tickets', ['id'], unique=False)
    op.create_index('ix_tickets_user_id', 'tickets', ['user_id'], unique=False)

    op.create_table(
        'ticket_messages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('ticket_id', sa.Integer(), nullable=False),
        sa.Column('sender_id', sa.String(128), nullable=False),
        sa.Column('sender_name', sa.String(255), nullable=False),
        sa.Column('sender_role', sa.String(20), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['ticket_id'], ['tickets.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_ticket_messages_id', 'ticket_messages', ['id'], unique=False)
    op.create_index('ix_ticket_messages_ticket_id', 'ticket_messages', ['ticket_id'], unique=False)


def downgrade() -> None:
    op.drop_table('ticket_messages')
    op.drop_table('tickets')
    op.drop_table('whatsapp_confirmations')
    op.drop_table('sales')
    op.drop_table('pre_agendamentos')
    op.drop_table('agendamentos')
    op.drop_table('precos_comissoes')
    op.drop_table('products')
    op.drop_table('activity_logs')
    op.drop_table('announcements')
    op.drop_table('approved_emails')
    op.drop_table('plans')
    op.drop_table('users')
